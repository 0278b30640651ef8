"""Remote access to wordpress.org."""
