import logging
import os
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "1") -> bool:
    v = (os.getenv(name, default) or default).strip().lower()
    return v in {"1", "true", "yes", "y", "on"}


def smtp_configured() -> bool:
    return all((os.getenv(k) or "").strip() for k in ("SMTP_HOST", "SMTP_USER", "SMTP_PASS"))


def send_password_reset_email(*, to_email: str, name: str | None, reset_token: str, expires_minutes: int) -> None:
    """
    Send a password-reset email over SMTP.

    Env vars:
      SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASS, SMTP_FROM, SMTP_TLS
    """
    host = (os.getenv("SMTP_HOST") or "").strip()
    port = int((os.getenv("SMTP_PORT") or "587").strip())
    user = (os.getenv("SMTP_USER") or "").strip()
    password = (os.getenv("SMTP_PASS") or "").strip()
    mail_from = (os.getenv("SMTP_FROM") or user).strip()
    use_tls = _env_bool("SMTP_TLS", "1")

    if not host or not user or not password or not mail_from:
        raise RuntimeError("SMTP is not configured (missing SMTP_HOST/SMTP_USER/SMTP_PASS/SMTP_FROM).")

    greeting = (name or "there").strip()
    lines = [
        f"Hi {greeting},",
        "",
        "We received a request to reset your HireSphere password.",
        f"Use this token within {expires_minutes} minutes to choose a new password:",
        "",
        reset_token,
        "",
        "If you did not ask for this, you can ignore this email.",
        "",
        "HireSphere",
    ]

    msg = EmailMessage()
    msg["Subject"] = "Reset your HireSphere password"
    msg["From"] = mail_from
    msg["To"] = to_email
    msg.set_content("\n".join(lines))

    logger.info("Sending password reset email via %s:%s (TLS=%s)", host, port, use_tls)
    with smtplib.SMTP(host, port, timeout=15) as smtp:
        smtp.ehlo()
        if use_tls:
            smtp.starttls()
            smtp.ehlo()
        smtp.login(user, password)
        smtp.send_message(msg)
    logger.info("Password reset email sent to %s", to_email)
