"""
HTTP surface for the school data service.

- create_app(): FastAPI app with the service in its lifespan
- router: status, settings, import/export and sync routes under /v1
"""

from .http_app import build_service, create_app
from .routes import router

__all__ = [
    "create_app",
    "build_service",
    "router",
]
