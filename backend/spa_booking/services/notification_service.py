"""
Client and staff notifications for reservations.

Dispatch is fire-and-forget: callers have already committed the reservation,
so any delivery problem is logged and reported through the return value,
never raised.
"""
from html import escape
from typing import Optional
import enum
import logging

from spa_booking.config import settings
from spa_booking.models.reservation import Reservation
from spa_booking.services.email_service import send_email
from spa_booking.services.sms_service import send_sms, sms_configured

logger = logging.getLogger(__name__)


class NotificationKind(str, enum.Enum):
    CONFIRMATION = "confirmation"
    ADMIN_NOTICE = "adminNotice"
    CANCELLATION = "cancellation"
    REMINDER = "reminder"


def _when(reservation: Reservation) -> str:
    return reservation.start_at.strftime('%B %d, %Y at %I:%M %p')


def _details_table(reservation: Reservation) -> str:
    service = reservation.service
    return f"""
    <div style="background: #F3F4F6; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <table style="width: 100%; color: #374151;">
            <tr>
                <td style="padding: 8px 0;"><strong>Service:</strong></td>
                <td style="padding: 8px 0;">{escape(service.name)}</td>
            </tr>
            <tr>
                <td style="padding: 8px 0;"><strong>Date & Time:</strong></td>
                <td style="padding: 8px 0;">{_when(reservation)}</td>
            </tr>
            <tr>
                <td style="padding: 8px 0;"><strong>Duration:</strong></td>
                <td style="padding: 8px 0;">{service.duration_minutes} minutes</td>
            </tr>
        </table>
    </div>
    """


def _wrap(title: str, body: str) -> str:
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background: #6B8F71; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
            <h1 style="color: white; margin: 0;">{title}</h1>
        </div>
        <div style="background: white; padding: 30px; border: 1px solid #e5e7eb; border-top: none;">
            {body}
        </div>
        <div style="background: #F9FAFB; padding: 20px; text-align: center; border-radius: 0 0 10px 10px;">
            <p style="color: #6B7280; font-size: 12px; margin: 0;">{escape(settings.BUSINESS_NAME)}</p>
        </div>
    </div>
    """


def build_email(reservation: Reservation, kind: NotificationKind, reason: Optional[str] = None):
    """Return (recipient, subject, html) for a notification"""
    service_name = reservation.service.name
    greeting = f'<p style="font-size: 18px;">Hi <strong>{escape(reservation.client_name)}</strong>,</p>'

    if kind == NotificationKind.CONFIRMATION:
        body = (
            greeting
            + "<p>We have received your reservation. Here are the details:</p>"
            + _details_table(reservation)
            + "<p>Please arrive 5-10 minutes early. Payment is made in person.</p>"
        )
        return (
            reservation.client_email,
            f"Reservation received - {service_name}",
            _wrap("Reservation received", body),
        )

    if kind == NotificationKind.ADMIN_NOTICE:
        notes = f"<p><strong>Notes:</strong> {escape(reservation.notes)}</p>" if reservation.notes else ""
        body = (
            f"<p><strong>Client:</strong> {escape(reservation.client_name)}</p>"
            f"<p><strong>Email:</strong> {escape(reservation.client_email)}</p>"
            f"<p><strong>Phone:</strong> {escape(reservation.client_phone)}</p>"
            + _details_table(reservation)
            + notes
        )
        return (
            settings.BUSINESS_EMAIL,
            f"New reservation - {service_name}",
            _wrap("New reservation", body),
        )

    if kind == NotificationKind.CANCELLATION:
        reason_html = f"<p><strong>Reason:</strong> {escape(reason)}</p>" if reason else ""
        body = (
            greeting
            + "<p>Your reservation has been cancelled:</p>"
            + _details_table(reservation)
            + reason_html
            + "<p>You are welcome to book a new time whenever suits you.</p>"
        )
        return (
            reservation.client_email,
            f"Reservation cancelled - {service_name}",
            _wrap("Reservation cancelled", body),
        )

    body = (
        greeting
        + "<p>This is a friendly reminder about your upcoming appointment:</p>"
        + _details_table(reservation)
        + "<p>If you need to cancel or reschedule, please contact us as soon as possible.</p>"
    )
    return (
        reservation.client_email,
        f"Reminder: {service_name} at {reservation.start_at.strftime('%I:%M %p')}",
        _wrap("Appointment reminder", body),
    )


def build_sms(reservation: Reservation, kind: NotificationKind) -> Optional[str]:
    when = reservation.start_at.strftime('%b %d, %Y at %I:%M %p')
    if kind == NotificationKind.CONFIRMATION:
        return f"{settings.BUSINESS_NAME}: reservation received for {reservation.service.name} on {when}."
    if kind == NotificationKind.REMINDER:
        return f"{settings.BUSINESS_NAME}: reminder of your {reservation.service.name} on {when}."
    return None


def dispatch(reservation: Reservation, kind: NotificationKind, reason: Optional[str] = None) -> bool:
    """Send a notification; returns whether the email went out"""
    kind = NotificationKind(kind)
    sent = False

    try:
        to_email, subject, html_content = build_email(reservation, kind, reason)
        result = send_email(to_email=to_email, subject=subject, html_content=html_content)
        sent = bool(result.get("success"))
        if not sent:
            logger.warning(
                "%s email for reservation %s not sent: %s",
                kind.value, reservation.id, result.get("error")
            )
    except Exception:
        logger.exception("Failed to send %s email for reservation %s", kind.value, reservation.id)

    text = build_sms(reservation, kind)
    if text and reservation.client_phone and sms_configured():
        try:
            send_sms(to_phone=reservation.client_phone, message=text)
        except Exception:
            logger.exception("Failed to send %s SMS for reservation %s", kind.value, reservation.id)

    return sent
