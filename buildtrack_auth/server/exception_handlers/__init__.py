"""
Exception handlers for the auth server.

This package contains the handlers for auth errors and unhandled exceptions
and a setup function to register them with the FastAPI application.
"""

from .global_handler import auth_error_handler, global_exception_handler, setup_exception_handlers

__all__ = ["auth_error_handler", "global_exception_handler", "setup_exception_handlers"]
