"""
SMTP mail transport.
Sends HTML mail through any STARTTLS-capable relay (MAIL_HOST / MAIL_PORT).
"""

import asyncio
import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

import config


logger = logging.getLogger(__name__)


def is_valid_address(address: str) -> bool:
    return bool(address) and '@' in address and '.' in address.split('@')[1]


class SmtpSender:
    """SMTP email sender."""

    def __init__(self):
        self.smtp_host = config.MAIL_HOST
        self.smtp_port = config.MAIL_PORT
        self.username = config.MAIL_USER
        self.password = config.MAIL_PASS
        self.from_email = config.FROM_EMAIL
        self.timeout = config.MAIL_TIMEOUT_SECONDS

    def _deliver(self, msg: MIMEMultipart):
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout) as server:
            server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def send_email(self, to_email: str, subject: str, html: str) -> bool:
        """Send email via SMTP."""
        if not is_valid_address(to_email):
            logger.warning("Invalid email format: %s", to_email)
            return False
        if not self.smtp_host:
            logger.error("MAIL_HOST is not configured")
            return False

        msg = MIMEMultipart()
        msg['From'] = self.from_email
        msg['To'] = to_email
        msg['Subject'] = subject
        msg.attach(MIMEText(html, 'html'))

        try:
            await asyncio.to_thread(self._deliver, msg)
        except smtplib.SMTPRecipientsRefused as e:
            logger.warning("Invalid recipient email: %s - %s", to_email, e)
            return False
        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed: %s", e)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP send failed to %s: %s", to_email, e)
            return False

        logger.info("Email sent successfully to: %s", to_email)
        return True
