"""
API Routers Module

FastAPI routers
"""

from .container_router import container_router, container_service
from .file_router import file_router, file_service

__all__ = [
    "container_router",
    "container_service",
    "file_router",
    "file_service",
]
