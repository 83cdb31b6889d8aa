"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from fastapi import APIRouter

from buildtrack_auth.server.core.constant import API_VERSION, SCHEMA_VERSION

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the auth server.",
    response_description="Status object.",
)
async def health_check():
    """Returns a simple status indicator to confirm the server is running and reachable."""
    return {"status": "ok"}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the auth server.",
    response_description="Version object.",
)
async def version():
    """Returns the API version and supported schema version."""
    return {"version": API_VERSION, "schema_version": SCHEMA_VERSION}
