import logging
import smtplib
from datetime import date
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from slotbook.core.config import Settings
from slotbook.models.booking import Booking
from slotbook.models.booking_link import BookingLink

logger = logging.getLogger(__name__)


def _send_email_sync(settings: Settings, to_email: str, subject: str, html_body: str) -> None:
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
        logger.exception("Failed to send email to %s: %s", to_email, e)


def _html_escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def format_slot(selected_date: str, selected_time: str, duration_minutes: int) -> str:
    d = date.fromisoformat(selected_date)
    hours, minutes = (int(p) for p in selected_time.split(":"))
    end_total = hours * 60 + minutes + duration_minutes
    return f"{d.strftime('%A, %B %d, %Y')}, {selected_time} – {end_total // 60:02d}:{end_total % 60:02d}"


def manage_booking_url(settings: Settings, booking: Booking) -> str:
    base = settings.frontend_url.rstrip("/")
    return f"{base}/booking/{booking.id}/manage?token={booking.cancellation_token}"


def _layout(settings: Settings, title: str, body_html: str) -> str:
    contact = _html_escape(settings.contact_email) if settings.contact_email else ""
    return f"""
<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f3f4f6;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f3f4f6;">
    <tr>
      <td align="center" style="padding:40px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:560px;background:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="padding:32px;">
              <h1 style="margin:0 0 16px 0;font-size:22px;font-weight:600;color:#111827;">{title}</h1>
              {body_html}
            </td>
          </tr>
          <tr>
            <td style="padding:24px 32px;background:#f9fafb;border-top:1px solid #e5e7eb;">
              <p style="margin:0;font-size:13px;font-weight:600;color:#111827;">{_html_escape(settings.site_name)}</p>
              <p style="margin:0;font-size:13px;color:#6b7280;">{contact}</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""


def _slot_box(label: str, value: str) -> str:
    return (
        '<p style="margin:0 0 4px 0;font-size:12px;text-transform:uppercase;color:#6b7280;">'
        f"{label}</p>"
        f'<p style="margin:0 0 16px 0;font-size:16px;font-weight:600;color:#111827;">{value}</p>'
    )


def build_booking_confirmation_html(settings: Settings, booking: Booking, link: BookingLink) -> str:
    slot = format_slot(booking.selected_date, booking.selected_time, link.duration)
    body = (
        f'<p style="color:#6b7280;">Hi {_html_escape(booking.first_name)}, your appointment is booked.</p>'
        + _slot_box("Appointment", _html_escape(link.name))
        + _slot_box(f"When ({link.duration}-minute session)", slot)
        + '<p style="font-size:14px;color:#374151;">Need to change plans? '
        f'<a href="{_html_escape(manage_booking_url(settings, booking))}">Cancel or reschedule your booking</a>.</p>'
    )
    return _layout(settings, "Booking Confirmed", body)


def build_cancellation_html(settings: Settings, booking: Booking, link: BookingLink | None) -> str:
    slot = format_slot(booking.selected_date, booking.selected_time, link.duration if link else 30)
    body = (
        f'<p style="color:#6b7280;">Hi {_html_escape(booking.first_name)}, your booking has been cancelled.</p>'
        + _slot_box("Cancelled appointment", slot)
    )
    return _layout(settings, "Booking Cancelled", body)


def build_reschedule_html(
    settings: Settings, booking: Booking, link: BookingLink | None, old_date: str, old_time: str
) -> str:
    duration = link.duration if link else 30
    body = (
        f'<p style="color:#6b7280;">Hi {_html_escape(booking.first_name)}, your booking has been moved.</p>'
        + _slot_box("Previous time", format_slot(old_date, old_time, duration))
        + _slot_box("New time", format_slot(booking.selected_date, booking.selected_time, duration))
        + f'<p style="font-size:14px;"><a href="{_html_escape(manage_booking_url(settings, booking))}">'
        "Manage your booking</a></p>"
    )
    return _layout(settings, "Booking Rescheduled", body)


def build_admin_notification_html(settings: Settings, booking: Booking, link: BookingLink) -> str:
    slot = format_slot(booking.selected_date, booking.selected_time, link.duration)
    notes = _html_escape(booking.notes) if booking.notes else "-"
    body = (
        _slot_box("Booking link", _html_escape(link.name))
        + _slot_box("When", slot)
        + _slot_box("Name", _html_escape(f"{booking.first_name} {booking.last_name}"))
        + _slot_box("Contact", _html_escape(f"{booking.email} · {booking.phone}"))
        + _slot_box("Role", _html_escape(booking.role))
        + _slot_box("Notes", notes)
    )
    return _layout(settings, "New Booking", body)


def send_booking_confirmation_email(settings: Settings, booking: Booking, link: BookingLink) -> None:
    """Compose and send booking confirmation (call from background task)."""
    subject = f"{settings.site_name} – Booking Confirmed"
    _send_email_sync(settings, booking.email, subject, build_booking_confirmation_html(settings, booking, link))


def send_cancellation_email(settings: Settings, booking: Booking, link: BookingLink | None) -> None:
    subject = f"{settings.site_name} – Booking Cancelled"
    _send_email_sync(settings, booking.email, subject, build_cancellation_html(settings, booking, link))


def send_reschedule_email(
    settings: Settings, booking: Booking, link: BookingLink | None, old_date: str, old_time: str
) -> None:
    subject = f"{settings.site_name} – Booking Rescheduled"
    html = build_reschedule_html(settings, booking, link, old_date, old_time)
    _send_email_sync(settings, booking.email, subject, html)


def send_admin_booking_notification_email(settings: Settings, booking: Booking, link: BookingLink) -> None:
    admin_email = settings.admin_notification_email or settings.from_email
    if not admin_email:
        return
    subject = f"{settings.site_name} – New booking for {link.name}"
    _send_email_sync(settings, admin_email, subject, build_admin_notification_html(settings, booking, link))
