"""FastAPI HTTP layer.

This package contains the FastAPI-specific adapters (middleware, error
handling, settings parsing, body parsing and templates).

The ASGI application factory lives in `devops_practice.app`.
"""
