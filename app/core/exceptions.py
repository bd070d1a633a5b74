"""
Error taxonomy shared by the token layer and the routes.

The HTTP errors subclass FastAPI's HTTPException so routes can raise them
directly and FastAPI renders them like any other HTTPException.
"""

from enum import Enum
from typing import Optional

from fastapi import HTTPException, status


class TokenFailure(str, Enum):
    MALFORMED = "malformed"
    SIGNATURE_MISMATCH = "signature_mismatch"
    EXPIRED = "expired"


class TokenError(Exception):
    """Raised by the token codec when a token cannot be verified."""

    def __init__(self, reason: TokenFailure, message: Optional[str] = None):
        self.reason = reason
        super().__init__(message or reason.value)


class AuthMissing(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthInvalid(HTTPException):
    def __init__(self, reason: Optional[TokenFailure] = None):
        self.reason = reason
        detail = "Invalid token" if reason is None else f"Invalid token: {reason.value}"
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthForbidden(HTTPException):
    def __init__(self, capability: str):
        self.capability = capability
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient capabilities. Required: {capability}",
        )


class ValidationError(HTTPException):
    """A caller-supplied identifier is unparseable or outside the token's group."""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
