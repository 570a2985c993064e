from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func
from datetime import datetime, timedelta
from spa_booking.database import get_db
from spa_booking.models.reservation import Reservation, ReservationStatus, ACTIVE_STATUSES
from spa_booking.models.contact import ContactMessage
from spa_booking.models.service import Service
from spa_booking.models.user import User
from spa_booking.utils.security import get_current_admin


router = APIRouter()


def build_dashboard(db: Session, now: datetime = None):
    """Day overview, upcoming week and monthly figures"""
    now = now or datetime.now()

    # Today's date range
    today_start = datetime.combine(now.date(), datetime.min.time())
    today_end = today_start + timedelta(days=1)
    week_later = today_start + timedelta(days=7)
    month_start = today_start.replace(day=1)

    today_reservations = db.query(Reservation).options(
        joinedload(Reservation.service)
    ).filter(
        Reservation.start_at >= today_start,
        Reservation.start_at < today_end
    ).order_by(Reservation.start_at).all()

    status_counts = {s.value: 0 for s in ReservationStatus}
    for r in today_reservations:
        status_counts[r.status.value] += 1

    upcoming = db.query(Reservation).options(
        joinedload(Reservation.service)
    ).filter(
        Reservation.start_at >= now,
        Reservation.start_at < week_later,
        Reservation.status.in_(ACTIVE_STATUSES)
    ).order_by(Reservation.start_at).all()

    month_filter = Reservation.start_at >= month_start
    month_count = db.query(Reservation).filter(month_filter).count()

    distinct_clients = db.query(
        func.count(func.distinct(Reservation.client_email))
    ).scalar() or 0

    popular = db.query(
        Service.id, Service.name, func.count(Reservation.id).label("bookings")
    ).join(Reservation, Reservation.service_id == Service.id).filter(
        month_filter,
        Reservation.status != ReservationStatus.CANCELLED
    ).group_by(Service.id, Service.name).order_by(
        func.count(Reservation.id).desc(), Service.name
    ).limit(5).all()

    unread_messages = db.query(ContactMessage).filter(ContactMessage.is_read == False).count()

    return {
        "today": {
            "date": today_start.date().isoformat(),
            "total": len(today_reservations),
            "by_status": status_counts,
            "reservations": [
                {
                    "id": r.id,
                    "time": r.start_at.strftime("%H:%M"),
                    "client_name": r.client_name,
                    "service": r.service.name,
                    "status": r.status.value
                } for r in today_reservations
            ]
        },
        "upcoming": [
            {
                "id": r.id,
                "start_at": r.start_at.isoformat(),
                "client_name": r.client_name,
                "client_email": r.client_email,
                "service": r.service.name,
                "duration": r.service.duration_minutes,
                "status": r.status.value
            } for r in upcoming
        ],
        "month_reservations": month_count,
        "distinct_clients": distinct_clients,
        "popular_services": [
            {"id": row.id, "name": row.name, "bookings": row.bookings}
            for row in popular
        ],
        "unread_messages": unread_messages
    }


@router.get("/dashboard")
def get_dashboard(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """Get dashboard statistics"""
    return build_dashboard(db)
