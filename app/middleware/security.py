"""Security middleware and input sanitization"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import bleach
import logging

logger = logging.getLogger(__name__)

class SecurityMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        path = request.url.path
        is_docs_endpoint = path.startswith('/api/docs') or path.startswith('/api/redoc') or path.startswith('/openapi.json')

        if not is_docs_endpoint:
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        return response

class InputSanitizer:
    """Input sanitization for user supplied text"""

    @staticmethod
    def sanitize_text(value: str, max_length: int = 2000) -> str:
        """Remove all HTML and strip surrounding whitespace"""
        value = value.replace("\x00", "")
        value = bleach.clean(value, tags=[], strip=True)
        return value.strip()[:max_length]

    @staticmethod
    def sanitize_message(message: str) -> str:
        """Sanitize comments; HTML is stripped, line breaks are kept"""
        message = message.replace("\r\n", "\n")
        return InputSanitizer.sanitize_text(message, max_length=2000)
