"""
Utilities Module

Common exceptions and response models.
"""

from .exceptions import (
    BusinessException,
    register_exception_handlers,
)
from .model import (
    ResponseCode,
    BaseResponse,
    ListResponse,
)

__all__ = [
    # Exceptions
    "BusinessException",
    "register_exception_handlers",
    # Response models
    "ResponseCode",
    "BaseResponse",
    "ListResponse",
]
