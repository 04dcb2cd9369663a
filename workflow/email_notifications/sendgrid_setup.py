"""
SendGrid mail transport.
Uses the SendGrid API instead of SMTP for hosted deployments.
"""

import asyncio
import logging

import sendgrid
from python_http_client.exceptions import HTTPError
from sendgrid.helpers.mail import Mail

import config
from .smtp_setup import is_valid_address


logger = logging.getLogger(__name__)


class SendGridSender:
    """SendGrid API email sender."""

    def __init__(self):
        self.api_key = config.SENDGRID_API_KEY
        self.from_email = config.FROM_EMAIL
        self.sg = sendgrid.SendGridAPIClient(api_key=self.api_key)
        self.sg.client.timeout = config.MAIL_TIMEOUT_SECONDS

    async def send_email(self, to_email: str, subject: str, html: str) -> bool:
        """Send email via SendGrid API."""
        if not is_valid_address(to_email):
            logger.warning("Invalid email format: %s", to_email)
            return False

        message = Mail(
            from_email=self.from_email,
            to_emails=to_email,
            subject=subject,
            html_content=html
        )

        try:
            response = await asyncio.to_thread(self.sg.send, message)
        except HTTPError as e:
            logger.error("SendGrid rejected mail to %s: %s", to_email, e)
            return False
        except OSError as e:
            logger.error("SendGrid send failed to %s: %s", to_email, e)
            return False

        if response.status_code == 202:
            logger.info("Email sent successfully to: %s", to_email)
            return True
        logger.error("SendGrid error: %s", response.status_code)
        return False
