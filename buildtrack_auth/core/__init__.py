"""
Core utilities and configuration for BuildTrack Auth.

This package provides core functionality including logging configuration,
monitoring hooks, database setup, and shared models.
"""

from buildtrack_auth.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
