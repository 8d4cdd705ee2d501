"""
Business Exception Classes - Base Exception Definitions

Contains the request-level exception types raised by the service layer.
"""

from typing import Any


class BusinessException(Exception):
    """
    Business Logic Exception

    Used to reject requests the sandbox layer should never see.
    """

    def __init__(self, message: str, code: int = 400, data: Any = None):
        self.message = message
        self.code = code
        self.data = data
        super().__init__(self.message)


