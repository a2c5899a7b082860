"""FastAPI integration: error translation and app factory."""

from .errors import create_app, register_error_handlers

__all__ = ["create_app", "register_error_handlers"]
