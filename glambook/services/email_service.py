import logging
import smtplib
from datetime import UTC, datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from glambook.core.config import settings
from glambook.services import availability_service

logger = logging.getLogger(__name__)


def _send_email_sync(to_email: str, subject: str, html_body: str) -> None:
    """Send email via SMTP (blocking). Use from background task."""
    if not settings.email_enabled:
        logger.debug("Email disabled (SMTP not configured), skipping send")
        return
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{settings.from_name} <{settings.from_email}>"
    msg["To"] = to_email
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            server.starttls()
            server.login(settings.smtp_user, settings.smtp_password)
            server.sendmail(settings.from_email, [to_email], msg.as_string())
        logger.info("Email sent to %s", to_email)
    except Exception as e:
        # Delivery is best effort; the booking itself is already committed
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def _local_window(start_utc: datetime, duration_minutes: int) -> tuple[str, str]:
    """(date, "HH:MM AM - HH:MM PM") in the platform timezone."""
    tz = availability_service.platform_tz()
    start = start_utc.replace(tzinfo=UTC).astimezone(tz)
    end = start + timedelta(minutes=duration_minutes)
    return start.strftime("%A, %B %d, %Y"), f"{start.strftime('%I:%M %p')} - {end.strftime('%I:%M %p')}"


def build_booking_html(
    heading: str,
    intro: str,
    recipient_name: str,
    artist_name: str,
    service_type: str,
    start_utc: datetime,
    duration_minutes: int,
) -> str:
    date_str, time_str = _local_window(start_utc, duration_minutes)
    return f"""
<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{_html_escape(heading)}</title></head>
<body style="margin:0;padding:24px;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <div style="max-width:560px;margin:0 auto;background:#ffffff;border-radius:12px;padding:32px;">
    <h1 style="margin:0 0 8px 0;font-size:22px;color:#111827;">{_html_escape(heading)}</h1>
    <p style="margin:0 0 24px 0;color:#6b7280;">Hi {_html_escape(recipient_name or 'there')}, {_html_escape(intro)}</p>
    <p style="margin:0;color:#111827;"><strong>Artist:</strong> {_html_escape(artist_name)}</p>
    <p style="margin:0;color:#111827;"><strong>Service:</strong> {_html_escape(service_type)}</p>
    <p style="margin:0;color:#111827;"><strong>Date:</strong> {date_str}</p>
    <p style="margin:0 0 24px 0;color:#111827;"><strong>Time:</strong> {time_str} ({settings.platform_timezone})</p>
    <p style="margin:0;font-size:13px;color:#6b7280;">{settings.site_name} &nbsp;·&nbsp; {settings.contact_email}</p>
  </div>
</body>
</html>
"""


def send_booking_request_email(
    to_email: str,
    recipient_name: str | None,
    artist_name: str,
    service_type: str,
    start_utc: datetime,
    duration_minutes: int,
) -> None:
    """Compose and send the booking receipt (call from background task)."""
    html = build_booking_html(
        heading="Booking Received",
        intro="your appointment request has been received.",
        recipient_name=recipient_name or "",
        artist_name=artist_name,
        service_type=service_type,
        start_utc=start_utc,
        duration_minutes=duration_minutes,
    )
    _send_email_sync(to_email, f"{settings.site_name} - Booking Received", html)


def send_booking_cancelled_email(
    to_email: str,
    recipient_name: str | None,
    artist_name: str,
    service_type: str,
    start_utc: datetime,
    duration_minutes: int,
) -> None:
    html = build_booking_html(
        heading="Booking Cancelled",
        intro="the appointment below has been cancelled.",
        recipient_name=recipient_name or "",
        artist_name=artist_name,
        service_type=service_type,
        start_utc=start_utc,
        duration_minutes=duration_minutes,
    )
    _send_email_sync(to_email, f"{settings.site_name} - Booking Cancelled", html)
