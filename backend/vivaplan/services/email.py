from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
import smtplib
import ssl

from vivaplan.core.config import Settings, get_settings


class EmailDeliveryError(RuntimeError):
    pass


@dataclass(frozen=True)
class SmtpTransport:
    host: str
    port: int
    username: str | None
    password: str
    from_email: str
    from_name: str | None
    use_tls: bool
    use_ssl: bool
    timeout: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpTransport":
        if not settings.smtp_host or not settings.smtp_from_email:
            raise EmailDeliveryError("SMTP is not configured")
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            # App passwords are often pasted with spaces.
            password="".join((settings.smtp_password or "").split()),
            from_email=settings.smtp_from_email,
            from_name=settings.smtp_from_name,
            use_tls=settings.smtp_use_tls,
            use_ssl=settings.smtp_use_ssl,
            timeout=max(1, settings.smtp_timeout_seconds),
        )

    @property
    def from_header(self) -> str:
        if self.from_name:
            return f"{self.from_name} <{self.from_email}>"
        return self.from_email


def build_message(transport: SmtpTransport, *, to_email: str, subject: str, text_content: str) -> EmailMessage:
    message = EmailMessage()
    message["From"] = transport.from_header
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text_content)
    return message


def _classify(exc: Exception) -> str:
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return "SMTP authentication failed"
    if isinstance(exc, smtplib.SMTPRecipientsRefused):
        return "SMTP recipient rejected"
    if isinstance(exc, smtplib.SMTPSenderRefused):
        return "SMTP sender rejected"
    if isinstance(exc, smtplib.SMTPDataError):
        return "SMTP data rejected"
    if isinstance(exc, (smtplib.SMTPConnectError, smtplib.SMTPServerDisconnected, OSError)):
        return "SMTP connection failed"
    return "Unable to deliver email"


def send_email(*, to_email: str, subject: str, text_content: str, settings: Settings | None = None) -> None:
    """Deliver one plain-text message; a single attempt, failures raise EmailDeliveryError."""
    transport = SmtpTransport.from_settings(settings or get_settings())
    message = build_message(transport, to_email=to_email, subject=subject, text_content=text_content)
    try:
        if transport.use_ssl:
            with smtplib.SMTP_SSL(transport.host, transport.port, timeout=transport.timeout) as smtp:
                if transport.username:
                    smtp.login(transport.username, transport.password)
                smtp.send_message(message)
            return

        with smtplib.SMTP(transport.host, transport.port, timeout=transport.timeout) as smtp:
            if transport.use_tls:
                smtp.starttls(context=ssl.create_default_context())
            if transport.username:
                smtp.login(transport.username, transport.password)
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailDeliveryError(_classify(exc)) from exc
