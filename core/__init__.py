"""Core helpers: logging."""
