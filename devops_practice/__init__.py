"""A small practice web server: pages, dummy login, JSON endpoints."""

__version__ = "1.0.0"
