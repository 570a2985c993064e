from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
from spa_booking.database import get_db
from spa_booking.models.reservation import ReservationStatus, BookingChannel
from spa_booking.models.user import User
from spa_booking.schemas.reservation import (
    AdminBookingRequest, BulkAction, HistoryResponse, ReminderRequest,
    ReservationResponse, ReservationUpdate, StatusChange,
)
from spa_booking.services import booking_service, reservation_service
from spa_booking.tasks.reminders import send_booking_reminders
from spa_booking.utils.security import get_current_admin


router = APIRouter()


@router.get("")
def list_reservations(
    search: Optional[str] = None,
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    page: int = 1,
    limit: int = 50,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Search reservations by client, status and date range"""
    page = max(page, 1)
    limit = min(max(limit, 1), 200)
    result = reservation_service.list_reservations(
        db, search, status_filter, date_from, date_to, page, limit
    )
    result["reservations"] = [
        ReservationResponse.model_validate(r) for r in result["reservations"]
    ]
    return result


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_reservation(
    data: AdminBookingRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Manual booking by staff (phone or walk-in); confirmed unless stated otherwise"""
    return booking_service.submit_booking(
        db, data, channel=BookingChannel.ADMIN, actor=admin.email, status=data.status
    )


@router.post("/bulk")
def bulk_action(
    data: BulkAction,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Confirm, complete, cancel or remind many reservations at once"""
    return reservation_service.apply_bulk_action(
        db, data.reservation_ids, data.action, admin.email, data.reason
    )


@router.post("/reminders")
def send_reminders(
    data: ReminderRequest,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Remind the given reservations, or everyone booked for tomorrow when no ids are sent"""
    return send_booking_reminders(db=db, reservation_ids=data.reservation_ids, actor=admin.email)


@router.get("/{reservation_id}", response_model=ReservationResponse)
def get_reservation(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return reservation_service.get_reservation(db, reservation_id)


@router.patch("/{reservation_id}", response_model=ReservationResponse)
def update_reservation(
    reservation_id: int,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Edit client details, notes, time or status"""
    return reservation_service.update_reservation(db, reservation_id, data, admin.email)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
def confirm_reservation(
    reservation_id: int,
    data: Optional[StatusChange] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    reason = data.reason if data else None
    return reservation_service.change_status(
        db, reservation_id, ReservationStatus.CONFIRMED, admin.email, reason
    )


@router.post("/{reservation_id}/complete", response_model=ReservationResponse)
def complete_reservation(
    reservation_id: int,
    data: Optional[StatusChange] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    reason = data.reason if data else None
    return reservation_service.change_status(
        db, reservation_id, ReservationStatus.COMPLETED, admin.email, reason
    )


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
def cancel_reservation(
    reservation_id: int,
    data: Optional[StatusChange] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Cancel and email the client"""
    reason = data.reason if data else None
    return reservation_service.change_status(
        db, reservation_id, ReservationStatus.CANCELLED, admin.email, reason
    )


@router.get("/{reservation_id}/history", response_model=List[HistoryResponse])
def get_reservation_history(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return reservation_service.get_history(db, reservation_id)


@router.post("/{reservation_id}/resend-confirmation")
def resend_confirmation(
    reservation_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Email the client their booking confirmation again"""
    return reservation_service.resend_confirmation(db, reservation_id, admin.email)
