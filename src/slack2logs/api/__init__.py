"""slack2logs HTTP module.

This module provides the FastAPI application serving health and metrics
endpoints while the live collector runs.
"""

from slack2logs.api.router import create_api_router, create_app, create_server

__all__ = [
    "create_app",
    "create_api_router",
    "create_server",
]
