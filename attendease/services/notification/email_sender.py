"""
Email delivery over SMTP with Jinja2-rendered HTML bodies.
"""

import asyncio
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, Optional, Protocol

from jinja2 import Environment, PackageLoader, select_autoescape

from attendease.config.logging import get_logger
from attendease.config.settings import settings
from attendease.core.exceptions import EmailServiceError

logger = get_logger(__name__)


class EmailSender(Protocol):
    async def send_email(self, to: str, subject: str, html: str) -> None:
        ...


class EmailTemplateRenderer:
    """Renders ``templates/email/<name>.html`` shipped with the package."""

    def __init__(self, env: Optional[Environment] = None):
        self.env = env or Environment(
            loader=PackageLoader("attendease", "templates/email"),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        template = self.env.get_template(f"{template_name}.html")
        return template.render(**context)


class SmtpEmailSender:
    """Sends HTML email with the blocking ``smtplib`` client in a worker thread."""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_address: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.smtp_server = host or settings.SMTP_HOST
        self.smtp_port = port or settings.SMTP_PORT
        self.username = username or settings.SMTP_USER
        self.password = password or settings.SMTP_PASSWORD
        self.use_tls = settings.SMTP_TLS if use_tls is None else use_tls
        self.from_address = from_address or settings.EMAIL_FROM_ADDRESS or self.username
        self.from_name = from_name or settings.EMAIL_FROM_NAME

    async def send_email(self, to: str, subject: str, html: str) -> None:
        if not all([self.smtp_server, self.from_address]):
            raise EmailServiceError("Email configuration incomplete", recipient=to)

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.from_name, self.from_address))
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))

        await asyncio.to_thread(self._send_smtp_message, msg, to)
        logger.info(f"Email sent successfully to {to}")

    def _send_smtp_message(self, msg: MIMEMultipart, recipient: str) -> None:
        try:
            with smtplib.SMTP(self.smtp_server, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.send_message(msg)
        except smtplib.SMTPException as e:
            raise EmailServiceError(f"SMTP error: {str(e)}", recipient=recipient) from e
