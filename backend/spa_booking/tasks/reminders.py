from sqlalchemy.orm import Session, joinedload
from datetime import datetime, timedelta
from typing import List, Optional
from spa_booking.database import SessionLocal
from spa_booking.models.reservation import Reservation, ReservationHistory, ACTIVE_STATUSES
from spa_booking.services.notification_service import dispatch, NotificationKind
from spa_booking.services.scheduling import day_bounds
import logging

logger = logging.getLogger(__name__)

def send_booking_reminders(
    db: Optional[Session] = None,
    reservation_ids: Optional[List[int]] = None,
    actor: str = "system",
    now: Optional[datetime] = None
):
    """
    Send reminder emails for upcoming appointments.

    Without ``reservation_ids`` every PENDING/CONFIRMED reservation starting
    tomorrow gets one; run this once a day via cron. With ids, only those that
    are still active are reminded. Each reservation is handled on its own so
    one failure does not stop the rest.
    """
    owns_session = db is None
    db = db or SessionLocal()
    now = now or datetime.now()

    try:
        query = db.query(Reservation).options(joinedload(Reservation.service)).filter(
            Reservation.status.in_(ACTIVE_STATUSES)
        )
        if reservation_ids is not None:
            query = query.filter(Reservation.id.in_(reservation_ids))
        else:
            tomorrow_start, tomorrow_end = day_bounds((now + timedelta(days=1)).date())
            query = query.filter(
                Reservation.start_at >= tomorrow_start,
                Reservation.start_at < tomorrow_end
            )
        reservations = query.order_by(Reservation.start_at).all()
        logger.info("Found %s reservation(s) to remind", len(reservations))

        results = []
        found = set()
        for reservation in reservations:
            found.add(reservation.id)
            if dispatch(reservation, NotificationKind.REMINDER):
                db.add(ReservationHistory(
                    reservation_id=reservation.id,
                    action="REMINDER_SENT",
                    detail=f"Reminder emailed to {reservation.client_email}",
                    actor=actor
                ))
                db.commit()
                results.append({"id": reservation.id, "success": True})
            else:
                results.append({
                    "id": reservation.id,
                    "success": False,
                    "code": "NotificationFailed",
                    "message": "Reminder could not be delivered"
                })

        for reservation_id in reservation_ids or []:
            if reservation_id not in found:
                results.append({
                    "id": reservation_id,
                    "success": False,
                    "code": "NotFound",
                    "message": "Reservation not found or no longer active"
                })

        succeeded = sum(1 for r in results if r["success"])
        logger.info("Sent %s/%s booking reminders", succeeded, len(results))
        return {
            "action": "remind",
            "total": len(results),
            "succeeded": succeeded,
            "failed": len(results) - succeeded,
            "results": results,
        }
    finally:
        if owns_session:
            db.close()

if __name__ == "__main__":
    from spa_booking.utils.logging_config import setup_logging

    setup_logging()
    summary = send_booking_reminders()
    logger.info("Complete! Sent %s reminders", summary["succeeded"])
