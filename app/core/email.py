import ssl
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import logging

import aiosmtplib

from app.core.config import settings

logger = logging.getLogger(__name__)


def mail_enabled() -> bool:
    return bool(settings.MAIL_SERVER)


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    is_html: bool = False
) -> bool:
    """
    Send an email asynchronously.

    Args:
        to_email: Recipient email address
        subject: Email subject
        body: Email body content
        is_html: Whether the body is HTML format

    Returns:
        True if email sent successfully, False otherwise (including when
        no MAIL_SERVER is configured)
    """
    if not mail_enabled():
        logger.warning("MAIL_SERVER not configured; skipping email to %s (%s)", to_email, subject)
        return False

    message = MIMEMultipart("alternative")
    message["From"] = f"{settings.MAIL_FROM_NAME} <{settings.MAIL_FROM}>"
    message["To"] = to_email
    message["Subject"] = subject
    message.attach(MIMEText(body, "html" if is_html else "plain"))

    # Port 465 uses SSL/TLS, anything else STARTTLS
    if settings.MAIL_PORT == 465:
        transport = {"use_tls": True, "tls_context": ssl.create_default_context()}
    else:
        transport = {"start_tls": True}

    try:
        await aiosmtplib.send(
            message,
            hostname=settings.MAIL_SERVER,
            port=settings.MAIL_PORT,
            username=settings.MAIL_USERNAME or None,
            password=settings.MAIL_PASSWORD or None,
            **transport,
        )
    except (aiosmtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to_email, e, exc_info=True)
        return False

    logger.info("Email sent successfully to %s", to_email)
    return True


def render_spare_assignment_digest(rows: list[dict]) -> str:
    """HTML table of placeholders waiting for a spare vehicle."""
    lines = "".join(
        f"<tr><td>#{row['reservation_id']}</td><td>#{row['original_reservation_id']}</td>"
        f"<td>{row['start_date']}</td><td>{row['end_date'] or 'open-ended'}</td>"
        f"<td>{row['customer'] or '-'}</td></tr>"
        for row in rows
    )
    return f"""
<html>
  <body>
    <h2>Spare vehicles awaiting assignment</h2>
    <p>The following placeholder reservations still need a spare vehicle:</p>
    <table border="1" cellpadding="4" cellspacing="0">
      <tr><th>Placeholder</th><th>For reservation</th><th>Start</th><th>End</th><th>Customer</th></tr>
      {lines}
    </table>
  </body>
</html>
"""


async def send_spare_assignment_digest(rows: list[dict]) -> bool:
    if not rows:
        return False
    if not settings.STAFF_ALERT_EMAIL:
        logger.info("STAFF_ALERT_EMAIL not set; %d pending spare assignment(s) not emailed", len(rows))
        return False
    return await send_email(
        to_email=settings.STAFF_ALERT_EMAIL,
        subject=f"{len(rows)} spare vehicle(s) awaiting assignment",
        body=render_spare_assignment_digest(rows),
        is_html=True,
    )
