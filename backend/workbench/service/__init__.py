"""
Service Layer

Business logic between the API routers and the sandbox runtime.
"""

from .container_service import ContainerService
from .file_service import FileService

__all__ = [
    "ContainerService",
    "FileService",
]
