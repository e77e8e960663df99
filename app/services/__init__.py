"""Services package"""

from .email_service import EmailService
from .notification_websocket import WebSocketNotificationService

__all__ = [
    "EmailService",
    "WebSocketNotificationService",
]
