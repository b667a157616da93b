# Overview: Outgoing email over SMTP (STARTTLS); used for password reset codes.

import smtplib
import ssl
from email.message import EmailMessage

from flask import current_app

from ..exceptions import MailDeliveryError


def send_otp_email(to_email: str, otp: str) -> None:
    """
    Send the password reset code.

    With MAIL_SUPPRESS_SEND (dev/test) the code is logged instead of sent.
    Raises MailDeliveryError when the SMTP exchange fails.
    """
    cfg = current_app.config
    minutes = max(1, cfg["OTP_TTL_SECONDS"] // 60)

    if cfg.get("MAIL_SUPPRESS_SEND"):
        current_app.logger.info("Mail suppressed, OTP for %s: %s", to_email, otp)
        return

    sender = cfg.get("MAIL_SENDER") or cfg.get("SMTP_USERNAME")
    if not (sender and cfg.get("SMTP_PASSWORD")):
        current_app.logger.warning("SMTP credentials missing, cannot send OTP to %s", to_email)
        raise MailDeliveryError()

    msg = EmailMessage()
    msg["Subject"] = "Your password reset code"
    msg["From"] = sender
    msg["To"] = to_email
    msg.set_content(f"Your one-time password is: {otp}\nIt expires in {minutes} minutes.")

    context = ssl.create_default_context()
    try:
        with smtplib.SMTP(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=15) as server:
            server.starttls(context=context)
            server.login(cfg["SMTP_USERNAME"] or sender, cfg["SMTP_PASSWORD"])
            server.send_message(msg)
    except (smtplib.SMTPException, OSError) as exc:
        current_app.logger.warning("Sending OTP to %s failed: %s", to_email, exc)
        raise MailDeliveryError() from exc
