"""wp-downloader - install WordPress from wordpress.org releases."""

__version__ = "0.3.0"
