"""Configuration schemas and file parsing."""
