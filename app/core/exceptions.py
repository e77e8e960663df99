"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Optional
import logging

logger = logging.getLogger(__name__)

class WishlistAPIException(HTTPException):
    """Base exception class for the wishlist application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(WishlistAPIException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class UnauthorizedException(WishlistAPIException):
    """401 Unauthorized"""

    def __init__(self, detail: str = "Unauthorized", error_code: str = "UNAUTHORIZED"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code=error_code,
            headers={"WWW-Authenticate": "Bearer"}
        )

class ForbiddenException(WishlistAPIException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(WishlistAPIException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class WishlistNotFoundException(NotFoundException):
    """Wishlist does not exist"""

    def __init__(self, detail: str = "Wishlist not found"):
        super().__init__(detail=detail, error_code="WISHLIST_NOT_FOUND")

class ProductNotFoundException(NotFoundException):
    """Product does not exist in the wishlist"""

    def __init__(self, detail: str = "Product not found"):
        super().__init__(detail=detail, error_code="PRODUCT_NOT_FOUND")

class InviteeNotFoundException(NotFoundException):
    """No registered user matches the invited email"""

    def __init__(self, email: str):
        super().__init__(
            detail=f"Invitee not found: no registered user with email '{email}'",
            error_code="INVITEE_NOT_FOUND"
        )

class AlreadyMemberException(BadRequestException):
    """User is already a member of the wishlist"""

    def __init__(self, detail: str = "User is already a member of this wishlist"):
        super().__init__(detail=detail, error_code="ALREADY_MEMBER")

async def wishlist_exception_handler(request: Request, exc: WishlistAPIException) -> JSONResponse:
    """Render application exceptions with their error code"""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
    else:
        logger.info(
            f"{request.method} {request.url.path} rejected with "
            f"{exc.status_code} {exc.error_code}: {exc.detail}"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.detail,
            "error_code": exc.error_code,
            "request_id": getattr(request.state, "request_id", None),
        },
        headers=exc.headers,
    )
