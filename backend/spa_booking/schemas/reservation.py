import re
from pydantic import BaseModel, EmailStr, validator
from typing import List, Optional
from datetime import datetime
from spa_booking.models.reservation import ReservationStatus, BookingChannel
from spa_booking.schemas.service import ServiceResponse

PHONE_RE = re.compile(r"^\+?[0-9\s\-()]+$")
NOTES_MAX_LENGTH = 500
REASON_MAX_LENGTH = 200


def to_local_naive(value: datetime) -> datetime:
    """Aware datetimes are converted to the server's local time and stripped of tzinfo."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def clean_client_name(v: str) -> str:
    v = " ".join(v.split())
    if len(v) < 2:
        raise ValueError('Name must be at least 2 characters')
    if len(v) > 100:
        raise ValueError('Name cannot exceed 100 characters')
    if not all(c.isalpha() or c in " '-" for c in v):
        raise ValueError('Name may only contain letters and spaces')
    return v


def clean_phone(v: str) -> str:
    v = v.strip()
    if not PHONE_RE.match(v):
        raise ValueError('Invalid phone number format')
    v = v.replace(" ", "")
    if len(v) < 10:
        raise ValueError('Phone number must have at least 10 digits')
    if len(v) > 20:
        raise ValueError('Phone number cannot exceed 20 characters')
    return v


def clean_notes(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    if len(v) > NOTES_MAX_LENGTH:
        raise ValueError(f'Notes cannot exceed {NOTES_MAX_LENGTH} characters')
    return v or None


def clean_reason(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = " ".join(v.split())
    if len(v) > REASON_MAX_LENGTH:
        raise ValueError(f'Reason cannot exceed {REASON_MAX_LENGTH} characters')
    return v or None


class BookingRequest(BaseModel):
    """A client's request for an appointment"""
    client_name: str
    client_email: EmailStr
    client_phone: str
    service_id: int
    start_at: datetime
    notes: Optional[str] = None

    @validator('client_name')
    def name_valid(cls, v):
        return clean_client_name(v)

    @validator('client_email')
    def email_lower(cls, v):
        return v.lower()

    @validator('client_phone')
    def phone_valid(cls, v):
        return clean_phone(v)

    @validator('start_at')
    def start_local(cls, v):
        return to_local_naive(v)

    @validator('notes')
    def notes_valid(cls, v):
        return clean_notes(v)


class AdminBookingRequest(BookingRequest):
    status: ReservationStatus = ReservationStatus.CONFIRMED

    @validator('status')
    def status_active(cls, v):
        if v not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise ValueError('New reservations must be PENDING or CONFIRMED')
        return v


class ReservationUpdate(BaseModel):
    status: Optional[ReservationStatus] = None
    client_name: Optional[str] = None
    client_email: Optional[EmailStr] = None
    client_phone: Optional[str] = None
    notes: Optional[str] = None
    start_at: Optional[datetime] = None
    reason: Optional[str] = None

    @validator('client_name')
    def name_valid(cls, v):
        return clean_client_name(v) if v is not None else v

    @validator('client_email')
    def email_lower(cls, v):
        return v.lower() if v is not None else v

    @validator('client_phone')
    def phone_valid(cls, v):
        return clean_phone(v) if v is not None else v

    @validator('start_at')
    def start_local(cls, v):
        return to_local_naive(v) if v is not None else v

    @validator('notes')
    def notes_valid(cls, v):
        # An explicit empty string clears the notes
        if v is not None and not v.strip():
            return ""
        return clean_notes(v)

    @validator('reason')
    def reason_valid(cls, v):
        return clean_reason(v)


class ReservationResponse(BaseModel):
    id: int
    client_name: str
    client_email: str
    client_phone: str
    service_id: int
    start_at: datetime
    end_at: datetime
    status: ReservationStatus
    channel: BookingChannel
    notes: Optional[str]
    created_at: datetime
    service: ServiceResponse

    class Config:
        from_attributes = True


class HistoryResponse(BaseModel):
    id: int
    action: str
    detail: Optional[str]
    actor: str
    created_at: datetime

    class Config:
        from_attributes = True


class StatusChange(BaseModel):
    reason: Optional[str] = None

    @validator('reason')
    def reason_valid(cls, v):
        return clean_reason(v)


class BulkAction(BaseModel):
    reservation_ids: List[int]
    action: str  # "confirm", "complete", "cancel", "remind"
    reason: Optional[str] = None

    @validator('reservation_ids')
    def ids_not_empty(cls, v):
        if not v:
            raise ValueError('Select at least one reservation')
        return v

    @validator('reason')
    def reason_valid(cls, v):
        return clean_reason(v)


class ReminderRequest(BaseModel):
    reservation_ids: Optional[List[int]] = None
