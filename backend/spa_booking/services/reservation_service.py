from typing import Dict, List, Optional
from datetime import date, datetime, timedelta
from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload
from spa_booking.errors import (
    BookingError, InternalError, InvalidInputError, InvalidTransitionError, NotFoundError
)
from spa_booking.models.reservation import (
    Reservation, ReservationHistory, ReservationStatus, ACTIVE_STATUSES
)
from spa_booking.schemas.reservation import NOTES_MAX_LENGTH, ReservationUpdate
from spa_booking.services.booking_service import booking_lock, validate_slot
from spa_booking.services.notification_service import dispatch, NotificationKind
from spa_booking.tasks.reminders import send_booking_reminders
import logging

logger = logging.getLogger(__name__)


ALLOWED_TRANSITIONS = {
    ReservationStatus.PENDING: {ReservationStatus.CONFIRMED, ReservationStatus.CANCELLED},
    ReservationStatus.CONFIRMED: {ReservationStatus.COMPLETED, ReservationStatus.CANCELLED},
    ReservationStatus.CANCELLED: set(),
    ReservationStatus.COMPLETED: set(),
}

BULK_ACTIONS = {
    "confirm": ReservationStatus.CONFIRMED,
    "complete": ReservationStatus.COMPLETED,
    "cancel": ReservationStatus.CANCELLED,
}


def get_reservation(db: Session, reservation_id: int) -> Reservation:
    reservation = db.query(Reservation).options(joinedload(Reservation.service)).filter(
        Reservation.id == reservation_id
    ).first()
    if not reservation:
        raise NotFoundError("Reservation not found")
    return reservation


def get_history(db: Session, reservation_id: int) -> List[ReservationHistory]:
    get_reservation(db, reservation_id)
    return db.query(ReservationHistory).filter(
        ReservationHistory.reservation_id == reservation_id
    ).order_by(ReservationHistory.created_at, ReservationHistory.id).all()


def list_reservations(
    db: Session,
    search: Optional[str] = None,
    status: Optional[ReservationStatus] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: int = 50
) -> Dict:
    """Filtered, paginated reservation list, newest appointment first"""
    query = db.query(Reservation)

    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Reservation.client_name.ilike(pattern),
            Reservation.client_email.ilike(pattern),
            Reservation.client_phone.contains(search)
        ))
    if status:
        query = query.filter(Reservation.status == status)
    if date_from:
        query = query.filter(Reservation.start_at >= datetime.combine(date_from, datetime.min.time()))
    if date_to:
        query = query.filter(Reservation.start_at < datetime.combine(date_to + timedelta(days=1), datetime.min.time()))

    total = query.count()
    reservations = query.options(joinedload(Reservation.service)).order_by(
        Reservation.start_at.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        "reservations": reservations,
        "total": total,
        "page": page,
        "total_pages": (total + limit - 1) // limit,
    }


def _append_note(notes: Optional[str], line: str) -> str:
    """Append a line to the notes, dropping the oldest text past the notes limit"""
    combined = f"{notes or ''}\n\n{line}".strip()
    if len(combined) > NOTES_MAX_LENGTH:
        combined = combined[-NOTES_MAX_LENGTH:].lstrip()
    return combined


def _transition(db: Session, reservation: Reservation, new_status: ReservationStatus,
                actor: str, reason: Optional[str] = None):
    """Apply a status change and record it; caller commits"""
    if new_status not in ALLOWED_TRANSITIONS[reservation.status]:
        raise InvalidTransitionError(
            f"Cannot change a {reservation.status.value} reservation to {new_status.value}",
            details={"from": reservation.status.value, "to": new_status.value}
        )

    previous = reservation.status
    reservation.status = new_status
    if new_status == ReservationStatus.CANCELLED and reason:
        reservation.notes = _append_note(reservation.notes, f"Cancellation reason: {reason}")

    detail = f"Status: {previous.value} -> {new_status.value}"
    if reason:
        detail += f". Reason: {reason}"
    db.add(ReservationHistory(
        reservation_id=reservation.id,
        action=new_status.value,
        detail=detail,
        actor=actor
    ))


def change_status(db: Session, reservation_id: int, new_status: ReservationStatus,
                  actor: str, reason: Optional[str] = None) -> Reservation:
    reservation = get_reservation(db, reservation_id)
    _transition(db, reservation, new_status, actor, reason)
    db.commit()
    db.refresh(reservation)
    logger.info("Reservation %s is now %s (%s)", reservation.id, new_status.value, actor)

    if new_status == ReservationStatus.CANCELLED:
        dispatch(reservation, NotificationKind.CANCELLATION, reason=reason)
    return reservation


def update_reservation(db: Session, reservation_id: int, changes: ReservationUpdate,
                       actor: str, now: Optional[datetime] = None) -> Reservation:
    """Edit client details, notes or time, then apply an optional status change"""
    now = now or datetime.now()
    reservation = get_reservation(db, reservation_id)

    edits = []
    for field in ("client_name", "client_email", "client_phone", "notes"):
        value = getattr(changes, field)
        if value is None:
            continue
        if field == "notes" and value == "":
            value = None
        if value != getattr(reservation, field):
            edits.append((field, getattr(reservation, field), value))
    reschedule = changes.start_at is not None and changes.start_at != reservation.start_at

    if (edits or reschedule) and reservation.status not in ACTIVE_STATUSES:
        raise InvalidTransitionError(
            f"A {reservation.status.value} reservation can no longer be edited"
        )

    if reschedule:
        with booking_lock(db, changes.start_at):
            validate_slot(db, changes.start_at, reservation.service.duration_minutes, now,
                          exclude_id=reservation.id)
            _apply_edits(db, reservation, edits, actor, changes.start_at)
            transitioned = _apply_status(db, reservation, changes, actor)
            db.commit()
    else:
        try:
            _apply_edits(db, reservation, edits, actor, None)
            transitioned = _apply_status(db, reservation, changes, actor)
            db.commit()
        except BookingError:
            db.rollback()
            raise

    db.refresh(reservation)
    if transitioned and changes.status == ReservationStatus.CANCELLED:
        dispatch(reservation, NotificationKind.CANCELLATION, reason=changes.reason)
    return reservation


def _apply_edits(db: Session, reservation: Reservation, edits, actor: str,
                 new_start: Optional[datetime]):
    changes = [f"{field}: {old} -> {new}" for field, old, new in edits]
    for field, _, new in edits:
        setattr(reservation, field, new)
    if new_start is not None:
        changes.append(f"start_at: {reservation.start_at.isoformat()} -> {new_start.isoformat()}")
        reservation.start_at = new_start

    if changes:
        db.add(ReservationHistory(
            reservation_id=reservation.id,
            action="EDITED",
            detail="Changes: " + ", ".join(changes),
            actor=actor
        ))


def _apply_status(db: Session, reservation: Reservation, changes: ReservationUpdate, actor: str) -> bool:
    if changes.status is None:
        return False
    # Re-sending the current status is a no-op, except on terminal states
    if changes.status == reservation.status and reservation.status in ACTIVE_STATUSES:
        return False
    _transition(db, reservation, changes.status, actor, changes.reason)
    return True


def apply_bulk_action(db: Session, reservation_ids: List[int], action: str,
                      actor: str, reason: Optional[str] = None) -> Dict:
    """Apply one action to many reservations; each item succeeds or fails on its own"""
    if action == "remind":
        return send_booking_reminders(db=db, reservation_ids=reservation_ids, actor=actor)

    if action not in BULK_ACTIONS:
        raise InvalidInputError(
            f"Unknown action: {action}",
            details={"allowed": sorted(list(BULK_ACTIONS) + ["remind"])}
        )

    new_status = BULK_ACTIONS[action]
    results = []
    for reservation_id in reservation_ids:
        try:
            change_status(db, reservation_id, new_status, actor, reason)
            results.append({"id": reservation_id, "success": True})
        except BookingError as e:
            db.rollback()
            results.append({"id": reservation_id, "success": False, "code": e.code, "message": e.message})
        except Exception:
            db.rollback()
            logger.exception("Bulk %s failed for reservation %s", action, reservation_id)
            error = InternalError()
            results.append({"id": reservation_id, "success": False, "code": error.code, "message": error.message})

    succeeded = sum(1 for r in results if r["success"])
    logger.info("Bulk %s: %s/%s succeeded", action, succeeded, len(results))
    return {
        "action": action,
        "total": len(results),
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
        "results": results,
    }


def resend_confirmation(db: Session, reservation_id: int, actor: str) -> Dict:
    """Email the booking confirmation to the client again"""
    reservation = get_reservation(db, reservation_id)
    if reservation.status not in ACTIVE_STATUSES:
        raise InvalidTransitionError(
            f"A {reservation.status.value} reservation cannot be confirmed again",
            details={"from": reservation.status.value}
        )

    if not dispatch(reservation, NotificationKind.CONFIRMATION):
        raise InternalError("The confirmation email could not be sent")

    db.add(ReservationHistory(
        reservation_id=reservation.id,
        action="CONFIRMATION_RESENT",
        detail=f"Confirmation emailed to {reservation.client_email}",
        actor=actor
    ))
    db.commit()
    logger.info("Confirmation for reservation %s resent by %s", reservation.id, actor)
    return {
        "success": True,
        "message": "Confirmation email sent",
        "email": reservation.client_email,
    }
