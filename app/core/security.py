"""
Security utilities for authentication
Verifies bearer tokens and exposes the caller identity to routes
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
import uuid
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from .config import settings
from .exceptions import UnauthorizedException

# Security scheme; missing headers are reported as 401 by get_current_user
security = HTTPBearer(auto_error=False)

class SecurityUtils:
    """Security utility functions"""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire, "type": "access"})
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    @staticmethod
    def decode_token(token: str) -> Dict[str, Any]:
        """Decode and validate JWT token"""
        try:
            return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise UnauthorizedException("Token verification failed", error_code="INVALID_TOKEN")

    @staticmethod
    def verify(token: str) -> Dict[str, Any]:
        """
        Verify a bearer credential and return the caller identity

        Any signature-valid, non-expired access token is authoritative for its
        ``sub`` claim.
        """
        payload = SecurityUtils.decode_token(token)

        if payload.get("type") != "access":
            raise UnauthorizedException("Invalid token type", error_code="INVALID_TOKEN")

        try:
            user_id = uuid.UUID(str(payload.get("sub")))
        except ValueError:
            raise UnauthorizedException("Token verification failed", error_code="INVALID_TOKEN")

        return {
            "id": user_id,
            "username": payload.get("username"),
            "email": payload.get("email"),
        }

# Dependency to get current user from token
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Dict[str, Any]:
    """Extract and validate user from the Authorization header"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException(
            "No authentication token, access denied",
            error_code="MISSING_TOKEN"
        )
    return SecurityUtils.verify(credentials.credentials)
