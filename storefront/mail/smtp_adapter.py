"""SMTP mail adapter."""

import smtplib
from email.message import EmailMessage
from typing import Optional

from ..core.logger import get_logger
from .port import Mailer

logger = get_logger(__name__)


class SmtpMailer(Mailer):
    def __init__(
        self,
        host: str,
        port: int = 587,
        username: Optional[str] = None,
        password: Optional[str] = None,
        from_email: str = "no-reply@storefront.local",
        use_tls: bool = True,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.from_email = from_email
        self.use_tls = use_tls
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, text: Optional[str], html: Optional[str]) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.from_email
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(text or "")
        if html:
            msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, text: Optional[str] = None, html: Optional[str] = None) -> bool:
        msg = self._build_message(to, subject, text, html)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("Email send failed", to=to, subject=subject, error=str(e))
            return False
        logger.info("Email sent", to=to, subject=subject)
        return True
