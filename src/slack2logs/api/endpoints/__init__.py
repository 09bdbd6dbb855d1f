"""slack2logs HTTP endpoints.

This module exports the endpoint routers for the FastAPI application.
"""

from slack2logs.api.endpoints import health, metrics

__all__ = [
    "health",
    "metrics",
]
