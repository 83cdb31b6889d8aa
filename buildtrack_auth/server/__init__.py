"""
BuildTrack Auth Server Package.

This package contains the web server of the auth service.

Subpackages:
    api: FastAPI route definitions and endpoint logic.
    core: Configuration and constants.
    middleware: Request logging middleware and auth dependencies.
    exception_handlers: Rendering of auth and unhandled errors.
    services: Secrets provisioning and dependency providers.
"""
