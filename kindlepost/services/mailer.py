"""
Kindle delivery over SMTP.

Sends a single file as an email attachment to the configured Kindle address.
"""

from __future__ import annotations

import mimetypes
import smtplib
import ssl
from email.message import EmailMessage
from pathlib import Path
from typing import Optional, Union

from kindlepost.config import Config
from kindlepost.utils import get_logger
from kindlepost.utils.errors import (
    AuthenticationError,
    ConfigurationError,
    DeliveryError,
)
from kindlepost.utils.file_utils import format_file_size

SUBJECT = "Document for Kindle"
BODY = "Please find the attached document."

APPROVED_SENDERS_URL = "https://www.amazon.com/hz/mycd/myx#/home/settings/payment"

MISSING_RECIPIENT_HINT = (
    "KINDLE_EMAIL is not set. Set it in your environment:\n"
    '  export KINDLE_EMAIL="your-kindle-email@kindle.com"\n\n'
    "Find your Kindle email at:\n"
    f"  {APPROVED_SENDERS_URL}"
)

MISSING_CREDENTIALS_HINT = (
    "SMTP credentials not configured. Set the following environment variables:\n"
    '  export SMTP_USER="your-email@gmail.com"\n'
    '  export SMTP_PASSWORD="your-app-password"\n\n'
    "Optional variables:\n"
    '  export SMTP_SERVER="smtp.gmail.com" (default)\n'
    '  export SMTP_PORT="587" (default)\n'
    '  export FROM_EMAIL="your-email@gmail.com"'
)

APP_PASSWORD_HINT = (
    "For Gmail:\n"
    "1. Enable 2-Factor Authentication on your Google account\n"
    "2. Create an App Password: https://myaccount.google.com/apppasswords\n"
    "3. Use the App Password as SMTP_PASSWORD"
)


class KindleMailer:
    """SMTP client that delivers documents to a Kindle address."""

    def __init__(
        self,
        kindle_email: Optional[str] = None,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        use_tls: Optional[bool] = None,
        timeout: Optional[int] = None,
    ) -> None:
        self.kindle_email = kindle_email if kindle_email is not None else Config.KINDLE_EMAIL
        self.smtp_server = smtp_server or Config.SMTP_SERVER
        self.smtp_port = smtp_port or Config.SMTP_PORT
        self.smtp_user = smtp_user if smtp_user is not None else Config.SMTP_USER
        self.smtp_password = (
            smtp_password if smtp_password is not None else Config.SMTP_PASSWORD
        )
        self.from_email = from_email or Config.FROM_EMAIL or self.smtp_user
        self.use_tls = Config.SMTP_USE_TLS if use_tls is None else use_tls
        self.timeout = timeout or Config.SMTP_TIMEOUT
        self.logger = get_logger("mailer")

    @property
    def is_configured(self) -> bool:
        """Check that a recipient and sender credentials are set."""
        return bool(self.kindle_email and self.smtp_user and self.smtp_password)

    def build_message(self, file_path: Path) -> EmailMessage:
        """Build the email with ``file_path`` attached."""
        content_type, _ = mimetypes.guess_type(file_path.name)
        maintype, subtype = (content_type or "application/octet-stream").split("/", 1)

        msg = EmailMessage()
        msg["Subject"] = SUBJECT
        msg["From"] = self.from_email
        msg["To"] = self.kindle_email
        msg.set_content(BODY)
        msg.add_attachment(
            file_path.read_bytes(),
            maintype=maintype,
            subtype=subtype,
            filename=file_path.name,
        )
        return msg

    def send(self, file_path: Union[str, Path]) -> None:
        """
        Send a file to the Kindle address.

        Raises:
            ConfigurationError: Recipient or credentials missing
            DeliveryError: File missing or the SMTP exchange failed
            AuthenticationError: The server rejected the credentials
        """
        if not self.kindle_email:
            raise ConfigurationError(MISSING_RECIPIENT_HINT, source="smtp")
        if not self.smtp_user or not self.smtp_password:
            raise ConfigurationError(MISSING_CREDENTIALS_HINT, source="smtp")

        file_path = Path(file_path)
        if not file_path.exists():
            raise DeliveryError(f"File not found: {file_path}", source="smtp")

        self.logger.info(f"Sending to Kindle: {self.kindle_email}")
        msg = self.build_message(file_path)

        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)
        except smtplib.SMTPAuthenticationError as exc:
            raise AuthenticationError(
                f"Email authentication failed: {exc}\n\n{APP_PASSWORD_HINT}",
                source="smtp",
            ) from exc
        except (smtplib.SMTPException, OSError) as exc:
            raise DeliveryError(f"Error sending email: {exc}", source="smtp") from exc

        self.logger.info(
            f"Successfully sent \"{file_path.name}\" "
            f"({format_file_size(file_path.stat().st_size)}) to {self.kindle_email}"
        )
        self.logger.info(
            "Make sure your sender email is in the approved list: "
            f"{APPROVED_SENDERS_URL}"
        )
