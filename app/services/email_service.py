"""Email service for wishlist invitations"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
import logging
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates" / "emails"

class EmailService:
    """Email service with template rendering"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.SMTP_FROM_EMAIL
        self.from_name = settings.SMTP_FROM_NAME

        # Setup Jinja2 for email templates
        self.env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(['html', 'xml'])
        )

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body: str,
        html_body: Optional[str] = None
    ) -> bool:
        """Send email; returns False instead of raising on delivery failure"""
        if not settings.EMAIL_ENABLED:
            logger.info(f"Email disabled, not sending '{subject}' to {to_email}")
            return False

        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{self.from_name} <{self.from_email}>"
            msg['To'] = to_email

            msg.attach(MIMEText(body, 'plain', 'utf-8'))
            if html_body:
                msg.attach(MIMEText(html_body, 'html', 'utf-8'))

            await aiosmtplib.send(
                msg,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True,
                timeout=settings.SMTP_TIMEOUT_SECONDS,
            )

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {str(e)}")
            return False

    def render_invitation(self, wishlist_name: str, inviter_name: str, join_link: str) -> str:
        template = self.env.get_template("wishlist_invitation.html")
        return template.render(
            wishlist_name=wishlist_name,
            inviter_name=inviter_name,
            join_link=join_link,
            app_name=settings.SMTP_FROM_NAME
        )

    async def notify(
        self,
        to_email: str,
        wishlist_name: str,
        inviter_name: str,
        join_link: str
    ) -> bool:
        """Send wishlist invitation email"""
        try:
            html_body = self.render_invitation(wishlist_name, inviter_name, join_link)
        except Exception as e:
            logger.error(f"Failed to render invitation for {to_email}: {str(e)}")
            return False

        return await self.send_email(
            to_email=to_email,
            subject="You've been invited to collaborate on a wishlist!",
            body=(
                f"{inviter_name} has invited you to collaborate on the wishlist "
                f"\"{wishlist_name}\".\n\nJoin here: {join_link}"
            ),
            html_body=html_body
        )

def get_invitation_notifier() -> EmailService:
    """Dependency returning the invitation notifier"""
    return EmailService()
