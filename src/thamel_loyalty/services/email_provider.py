"""
Email Provider Service
Adapter pattern for sending emails (dev logging vs production SMTP)

Providers are built once at application start-up and injected where needed;
there is no module-level transport singleton.
"""
import html
import logging
import smtplib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

logger = logging.getLogger(__name__)

BRAND_NAME = "Thamel Toronto"


@dataclass
class EmailMessage:
    """Email message structure"""
    to: str
    subject: str
    html_body: str
    text_body: Optional[str] = None
    from_address: Optional[str] = None


class EmailProvider(ABC):
    """
    Abstract email provider interface

    Implementations:
    - DevEmailProvider: Logs emails to console (development)
    - SMTPEmailProvider: Sends via SMTP (production)
    """

    @abstractmethod
    def send(self, message: EmailMessage) -> bool:
        """
        Send an email

        Returns:
            True if sent successfully, False otherwise
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if email provider is available/configured"""


class DevEmailProvider(EmailProvider):
    """Development email provider - logs emails instead of sending"""

    def send(self, message: EmailMessage) -> bool:
        logger.info(f"[DEV] Email to {message.to}: {message.subject}")
        if message.text_body:
            logger.info(f"[DEV] {message.text_body}")
        return True

    def is_available(self) -> bool:
        return True


class SMTPEmailProvider(EmailProvider):
    """SMTP email provider for production"""

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        from_address: str,
        use_tls: bool = True,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_address = from_address
        self.use_tls = use_tls
        self.timeout = timeout

    def send(self, message: EmailMessage) -> bool:
        msg = MIMEMultipart('alternative')
        msg['Subject'] = message.subject
        msg['From'] = message.from_address or self.from_address
        msg['To'] = message.to
        if message.text_body:
            msg.attach(MIMEText(message.text_body, 'plain'))
        msg.attach(MIMEText(message.html_body, 'html'))

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                if self.use_tls:
                    server.starttls()
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email '{message.subject}': {type(e).__name__}: {e}")
            return False

        logger.info(f"Email sent: {message.subject}")
        return True

    def is_available(self) -> bool:
        return all([self.host, self.port, self.user, self.password, self.from_address])


def build_email_provider(config) -> EmailProvider:
    """Pick SMTP when it is fully configured, otherwise the dev logger"""
    if config.smtp_configured:
        logger.info(f"Email provider: SMTP ({config.SMTP_HOST}:{config.SMTP_PORT})")
        return SMTPEmailProvider(
            host=config.SMTP_HOST,
            port=config.SMTP_PORT,
            user=config.SMTP_USER,
            password=config.SMTP_PASSWORD,
            from_address=config.MAIL_FROM,
        )
    logger.info("Email provider: DevEmailProvider (SMTP not configured, emails are logged only)")
    return DevEmailProvider()


def send_verification_code(provider: EmailProvider, email: str, code: str, expiry_minutes: int) -> bool:
    """Send the six-digit verification code"""
    html_body = f"""
    <div style="font-family: sans-serif; max-width: 480px; margin: 0 auto;">
        <h2>Verify your email</h2>
        <p>Your verification code is:</p>
        <p style="font-size: 28px; font-weight: bold; letter-spacing: 4px; color: #2563eb;">{code}</p>
        <p>This code expires in {expiry_minutes} minutes.</p>
        <p>If you didn't request this, you can safely ignore this email.</p>
        <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;" />
        <p style="color: #888; font-size: 12px;">{BRAND_NAME}</p>
    </div>
    """
    text_body = f"Your {BRAND_NAME} verification code is: {code}. It expires in {expiry_minutes} minutes."

    return provider.send(EmailMessage(
        to=email,
        subject=f"Your {BRAND_NAME} verification code",
        html_body=html_body,
        text_body=text_body,
    ))


def send_notification_email(provider: EmailProvider, email: str, subject: str, body: str) -> bool:
    """Send a staff-authored notification; body is escaped"""
    subject = subject or BRAND_NAME
    html_body = f"""
    <div style="font-family: sans-serif; max-width: 480px; margin: 0 auto;">
        <h2>{html.escape(subject)}</h2>
        <div style="white-space: pre-wrap;">{html.escape(body or '')}</div>
        <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;" />
        <p style="color: #888; font-size: 12px;">Thamel Bar &amp; Karaoke</p>
    </div>
    """
    return provider.send(EmailMessage(
        to=email,
        subject=subject,
        html_body=html_body,
        text_body=body or "",
    ))
