import os, smtplib, logging, socket
from email.message import EmailMessage
from typing import Callable, Optional

logger = logging.getLogger("placement_mail")

SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM") or SMTP_USER
APP_NAME = os.getenv("APP_NAME", "Placements")
SMTP_DISABLE = os.getenv("SMTP_DISABLE", "0") == "1"      # log instead of sending (dev)

def _smtp_config_complete() -> bool:
    return all([SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD, SMTP_FROM])

def send_email(to_email: str, subject: str, message: str) -> bool:
    """
    Send a plain text email via SMTP.
    Returns True if sent (or sending is disabled), False otherwise.
    """
    if SMTP_DISABLE:
        logger.warning("[SMTP_DISABLED] Email for %s -> %s", to_email, subject)
        return True

    if not _smtp_config_complete():
        logger.warning("[SMTP_FALLBACK] Incomplete SMTP config; email=%s subject=%s", to_email, subject)
        return False

    msg = EmailMessage()
    msg["Subject"] = subject
    msg["From"] = SMTP_FROM
    msg["To"] = to_email
    msg.set_content(message)

    try:
        with smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=15) as smtp:
            smtp.starttls()
            smtp.login(SMTP_USER, SMTP_PASSWORD)
            smtp.send_message(msg)
        logger.info("Sent email to %s", to_email)
        return True
    except (smtplib.SMTPException, OSError, socket.error) as e:
        logger.error("Failed sending email to %s: %s", to_email, e)
        return False


class EmailNotifier:
    """
    Notification collaborator that emails the recipient.

    `lookup_email` maps a user id to an address; users without one are skipped.
    """

    def __init__(self, lookup_email: Callable[[str], Optional[str]], sender: Callable[[str, str, str], bool] = send_email):
        self.lookup_email = lookup_email
        self.sender = sender

    def notify(self, recipient_id: str, event: str, title: str, message: str) -> None:
        email = self.lookup_email(recipient_id)
        if not email:
            logger.warning("No email for user %s; skipped %s notification", recipient_id, event)
            return
        body = f"Hi,\n\n{message}\n\nRegards,\n{APP_NAME} Team"
        if not self.sender(email, f"{APP_NAME}: {title}", body):
            logger.warning("Notification %s to %s was not delivered", event, recipient_id)
