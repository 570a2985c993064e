from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from datetime import date
from spa_booking.database import get_db
from spa_booking.models.user import User
from spa_booking.schemas.availability import (
    BlockedIntervalInput, BlockedIntervalResponse, BlockedIntervalToggle,
    WeeklyAvailabilityEntry, WeeklyScheduleUpdate,
)
from spa_booking.services import availability_service, blocked_interval_service
from spa_booking.utils.security import get_current_admin


router = APIRouter()

# ============== WEEKLY SCHEDULE ==============

@router.get("/schedule", response_model=List[WeeklyAvailabilityEntry])
def get_schedule(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """Opening hours per weekday (0=Sunday)"""
    return availability_service.get_weekly_schedule(db)


@router.put("/schedule", response_model=List[WeeklyAvailabilityEntry])
def update_schedule(
    data: WeeklyScheduleUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Replace opening hours for the given weekdays"""
    return availability_service.replace_weekly_schedule(
        db, [entry.model_dump() for entry in data.days]
    )

# ============== CALENDAR ==============

@router.get("/calendar")
def get_calendar(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Open, closed or blocked, and how many bookings, for each day in the range"""
    return availability_service.availability_calendar(db, start, end)

# ============== BLOCKED PERIODS ==============

@router.get("/blocked-intervals", response_model=List[BlockedIntervalResponse])
def list_blocked_intervals(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    return blocked_interval_service.list_blocked_intervals(db)


@router.post("/blocked-intervals", response_model=BlockedIntervalResponse, status_code=status.HTTP_201_CREATED)
def create_blocked_interval(
    data: BlockedIntervalInput,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Block a holiday, maintenance window or similar"""
    return blocked_interval_service.create_blocked_interval(db, data)


@router.get("/blocked-intervals/{interval_id}", response_model=BlockedIntervalResponse)
def get_blocked_interval(
    interval_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return blocked_interval_service.get_blocked_interval(db, interval_id)


@router.put("/blocked-intervals/{interval_id}", response_model=BlockedIntervalResponse)
def update_blocked_interval(
    interval_id: int,
    data: BlockedIntervalInput,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return blocked_interval_service.update_blocked_interval(db, interval_id, data)


@router.patch("/blocked-intervals/{interval_id}/active", response_model=BlockedIntervalResponse)
def toggle_blocked_interval(
    interval_id: int,
    data: BlockedIntervalToggle,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    return blocked_interval_service.set_blocked_interval_active(db, interval_id, data.is_active)


@router.delete("/blocked-intervals/{interval_id}")
def delete_blocked_interval(
    interval_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    blocked_interval_service.delete_blocked_interval(db, interval_id)
    return {"success": True, "message": "Blocked period deleted"}
