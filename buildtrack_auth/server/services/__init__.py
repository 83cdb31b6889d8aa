"""Service-layer helpers for the HTTP server."""
