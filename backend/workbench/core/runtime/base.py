# -*- coding: utf-8 -*-
"""
Base exceptions for sandbox runtime operations.
"""

import functools
import logging
from typing import Optional

logger = logging.getLogger(__name__)


class SandboxError(Exception):
    """Base exception for sandbox runtime operations."""

    code = 500

    def __init__(self, message: str, operation: str = "", details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.details = details or {}


class PortExhaustedError(SandboxError):
    """No free host port in the scan window."""

    code = 503


class PortConflictError(SandboxError):
    """A container's recorded port is taken and recreation is required."""

    code = 409


class PortUndeterminableError(SandboxError):
    """Neither a port binding nor a port label exists on the container."""

    code = 404


class RuntimeCommandError(SandboxError):
    """A runtime or shell command exited non-zero."""

    code = 502


def container_operation(operation_name: str, failure_prefix: str):
    """Decorator re-raising failures with an operation-specific message.

    Sandbox errors keep their class so callers can still tell a port
    conflict from a failed command; anything else becomes a SandboxError.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await func(*args, **kwargs)
            except SandboxError as e:
                raise e.__class__(
                    message=f"{failure_prefix}: {e.message}",
                    operation=operation_name,
                    details=e.details,
                ) from e
            except Exception as e:
                raise SandboxError(
                    message=f"{failure_prefix}: {e}",
                    operation=operation_name,
                ) from e
        return wrapper
    return decorator
