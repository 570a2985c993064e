from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from pydantic import BaseModel, EmailStr
from typing import List, Optional
from datetime import date
from spa_booking.database import get_db
from spa_booking.config import settings
from spa_booking.errors import NotFoundError
from spa_booking.models.contact import ContactMessage
from spa_booking.models.service import Service
from spa_booking.schemas.availability import SlotCheck
from spa_booking.schemas.reservation import BookingRequest, ReservationResponse
from spa_booking.schemas.service import ServiceResponse
from spa_booking.services import availability_service, booking_service
from spa_booking.services.email_service import send_email
from html import escape
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# ============== SERVICE CATALOG ==============

@router.get("/services", response_model=List[ServiceResponse])
def list_services(db: Session = Depends(get_db)):
    """Active services, shortest first"""
    return db.query(Service).filter(
        Service.is_active == True
    ).order_by(Service.duration_minutes, Service.name).all()


@router.get("/services/{service_id}", response_model=ServiceResponse)
def get_service(service_id: int, db: Session = Depends(get_db)):
    service = db.query(Service).filter(Service.id == service_id, Service.is_active == True).first()
    if not service:
        raise NotFoundError("Service not found")
    return service

# ============== AVAILABILITY ==============

@router.get("/availability", response_model=List[str])
def get_availability(
    day: date = Query(..., alias="date"),
    service_id: int = Query(...),
    db: Session = Depends(get_db)
):
    """Bookable "HH:MM" start times for a service on a date"""
    return availability_service.get_available_slots(db, day, service_id)


@router.get("/availability/next")
def get_next_available(
    service_id: int,
    from_date: Optional[date] = None,
    db: Session = Depends(get_db)
):
    """Earliest bookable slot for a service"""
    slot = availability_service.find_next_available(db, service_id, from_date)
    if not slot:
        return {
            "available": False,
            "message": f"No availability in the next {settings.NEXT_AVAILABLE_MAX_DAYS} days",
        }
    return {"available": True, "next_available": slot}


@router.post("/availability/check")
def check_availability(data: SlotCheck, db: Session = Depends(get_db)):
    """Advisory check; booking submission validates again"""
    return availability_service.check_slot(db, data.start_at, data.duration_minutes)

# ============== BOOKING ==============

@router.post("/bookings", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
def create_booking(data: BookingRequest, db: Session = Depends(get_db)):
    """Book an appointment"""
    return booking_service.submit_booking(db, data)

# ============== CONTACT FORM ==============

class ContactSubmission(BaseModel):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str


@router.post("/contact", status_code=status.HTTP_201_CREATED)
def submit_contact_form(data: ContactSubmission, db: Session = Depends(get_db)):
    """Store a contact message and let the business know"""
    contact = ContactMessage(
        name=data.name.strip(),
        email=data.email.lower(),
        phone=data.phone,
        subject=data.subject,
        message=data.message.strip()
    )
    db.add(contact)
    db.commit()
    db.refresh(contact)

    try:
        send_email(
            to_email=settings.BUSINESS_EMAIL,
            subject=f"New contact message: {data.subject or data.name}",
            html_content=f"""
            <html>
                <body>
                    <h2>New contact message</h2>
                    <p><strong>From:</strong> {escape(contact.name)} ({escape(contact.email)})</p>
                    <p><strong>Phone:</strong> {escape(contact.phone or '-')}</p>
                    <p>{escape(contact.message)}</p>
                </body>
            </html>
            """
        )
    except Exception:
        logger.exception("Contact notice email failed for message %s", contact.id)

    return {
        "success": True,
        "message": "Thank you! We'll be in touch soon.",
        "contact_id": contact.id
    }
