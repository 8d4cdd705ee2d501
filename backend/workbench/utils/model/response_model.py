"""
Unified Response Model

Provides standardized API response format for all endpoints.
"""

from typing import Any, List, Optional
from pydantic import BaseModel, Field

from workbench.core.runtime.base import SandboxError
from workbench.core.runtime.models import Diagnostic
from .response_code import ResponseCode


class BaseResponse(BaseModel):
    """Base response model for all API endpoints"""

    code: int = Field(200, description="API status code")
    message: str = Field("success", description="API status message")
    data: Optional[Any] = Field(None, description="API data")
    diagnostics: List[str] = Field(default_factory=list, description="Advisory failures that did not stop the request")

    model_config = {
        "arbitrary_types_allowed": True,
        "json_schema_extra": {
            "example": {
                "code": 200,
                "message": "success",
                "data": None,
                "diagnostics": [],
            }
        }
    }

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = None, diagnostics: Optional[List[Diagnostic]] = None):
        """
        Create success response

        Args:
            data: Response data
            message: Custom success message
            diagnostics: Advisory failures collected by the operation

        Returns:
            BaseResponse with success status
        """
        if message is None:
            message = ResponseCode.get_message(ResponseCode.SUCCESS)
        return cls(
            code=ResponseCode.SUCCESS,
            message=message,
            data=data,
            diagnostics=[d.message for d in diagnostics or []],
        )

    @classmethod
    def created(cls, data: Optional[Any] = None, message: str = None, diagnostics: Optional[List[Diagnostic]] = None):
        """Create response for resource creation"""
        if message is None:
            message = ResponseCode.get_message(ResponseCode.CREATED)
        return cls(
            code=ResponseCode.CREATED,
            message=message,
            data=data,
            diagnostics=[d.message for d in diagnostics or []],
        )

    @classmethod
    def error(cls, data: Optional[Any] = None, message: str = None, code: int = None):
        """
        Create error response

        Args:
            data: Response data
            message: Custom error message
            code: Error status code

        Returns:
            BaseResponse with error status
        """
        if code is None:
            code = ResponseCode.INTERNAL_SERVER_ERROR
        if message is None:
            message = ResponseCode.get_message(code)
        return cls(code=code, message=message, data=data)

    @classmethod
    def validation_error(cls, data: Optional[Any] = None, message: str = None):
        """Create response for validation error"""
        return cls.error(data=data, message=message, code=ResponseCode.VALIDATION_ERROR)

    @classmethod
    def from_sandbox_error(cls, exc: SandboxError):
        """Create error response carrying the code of a sandbox failure"""
        return cls.error(
            data={"operation": exc.operation, "details": exc.details},
            message=exc.message,
            code=exc.code,
        )


class ListResponse(BaseResponse):
    """Response model for list endpoints"""

    @classmethod
    def success(cls, items: List[Any], total: int = None, message: str = None):
        """
        Create success response for list data

        Args:
            items: List of items
            total: Total count
            message: Custom message

        Returns:
            BaseResponse with list data
        """
        if message is None:
            message = ResponseCode.get_message(ResponseCode.SUCCESS)
        data = {
            "items": items,
            "total": total if total is not None else len(items),
        }
        return cls(code=ResponseCode.SUCCESS, message=message, data=data)
