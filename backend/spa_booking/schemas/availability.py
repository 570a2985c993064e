from pydantic import BaseModel, validator
from typing import List, Optional
from datetime import datetime
from spa_booking.schemas.reservation import to_local_naive


class WeeklyAvailabilityEntry(BaseModel):
    day_of_week: int  # 0=Sunday ... 6=Saturday
    is_active: bool
    open_time: str = "09:00"
    close_time: str = "18:00"

    class Config:
        from_attributes = True


class WeeklyScheduleUpdate(BaseModel):
    days: List[WeeklyAvailabilityEntry]


class BlockedIntervalInput(BaseModel):
    start_at: datetime
    end_at: datetime
    reason: str
    description: Optional[str] = None

    @validator('start_at', 'end_at')
    def local_time(cls, v):
        return to_local_naive(v)

    @validator('reason')
    def reason_required(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Reason is required')
        return v


class BlockedIntervalResponse(BaseModel):
    id: int
    start_at: datetime
    end_at: datetime
    reason: str
    description: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BlockedIntervalToggle(BaseModel):
    is_active: bool


class SlotCheck(BaseModel):
    start_at: datetime
    duration_minutes: int

    @validator('start_at')
    def local_time(cls, v):
        return to_local_naive(v)
