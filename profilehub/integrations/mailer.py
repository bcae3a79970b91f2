"""Welcome email delivery over SMTP."""

import html
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid
from typing import Optional
from dotenv import load_dotenv

from profilehub.errors import DeliveryError

load_dotenv()

logger = logging.getLogger(__name__)

WELCOME_SUBJECT = "Welcome to Our Platform!"

WELCOME_TEMPLATE = """\
<h1>Welcome {name}!</h1>
<p>Your account has been successfully created.</p>
<p>You can now login to your account.</p>
<p>Best regards,<br>The Team</p>
"""


class SMTPNotifier:
    """Sends templated messages through an SMTP relay."""

    def __init__(
        self,
        smtp_server: Optional[str] = None,
        smtp_port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        sender: Optional[str] = None,
        use_tls: Optional[bool] = None,
        timeout: float = 30.0,
    ):
        self.smtp_server = smtp_server or os.getenv("SMTP_SERVER", "smtp.gmail.com")
        self.smtp_port = smtp_port or int(os.getenv("SMTP_PORT", "587"))
        self.username = username or os.getenv("EMAIL_USER")
        self.password = password or os.getenv("EMAIL_PASS")
        self.sender = sender or os.getenv("EMAIL_FROM") or self.username
        if use_tls is None:
            use_tls = os.getenv("SMTP_USE_TLS", "True").lower() == "true"
        self.use_tls = use_tls
        self.timeout = timeout

        if not self.username or not self.password:
            logger.warning("Email credentials not configured (EMAIL_USER / EMAIL_PASS). Email sending will fail.")

    def _connect(self) -> smtplib.SMTP:
        server = smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=self.timeout)
        if self.use_tls:
            server.starttls()
        if self.username and self.password:
            server.login(self.username, self.password)
        return server

    def check_connection(self) -> bool:
        """Probe the relay once. Logs the result and never raises."""
        try:
            with self._connect() as server:
                server.noop()
        except (smtplib.SMTPException, OSError) as e:
            logger.warning(f"Email transport unavailable: {type(e).__name__}: {str(e)}")
            return False
        logger.info(f"Email transport ready: {self.smtp_server}:{self.smtp_port}")
        return True

    def send_welcome(self, email: str, display_name: str) -> str:
        """Send the welcome message and return its Message-ID.

        Raises:
            DeliveryError: If the relay refused or could not be reached
        """
        if not self.sender:
            raise DeliveryError("Email sender not configured")

        message_id = make_msgid(domain=self.sender.rpartition("@")[2] or None)
        msg = MIMEMultipart("alternative")
        msg["From"] = self.sender
        msg["To"] = email
        msg["Subject"] = WELCOME_SUBJECT
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(WELCOME_TEMPLATE.format(name=html.escape(display_name)), "html"))

        try:
            with self._connect() as server:
                server.send_message(msg, to_addrs=[email])
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending welcome email to {email}: {type(e).__name__}: {str(e)}")
            raise DeliveryError(detail=str(e)) from e

        logger.info(f"Welcome email sent to {email}, message_id: {message_id}")
        return message_id
