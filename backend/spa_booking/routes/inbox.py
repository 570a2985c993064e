from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional
from spa_booking.database import get_db
from spa_booking.errors import NotFoundError
from spa_booking.models.contact import ContactMessage
from spa_booking.models.user import User
from spa_booking.utils.security import get_current_admin


router = APIRouter()


def _serialize(message: ContactMessage) -> dict:
    return {
        "id": message.id,
        "name": message.name,
        "email": message.email,
        "phone": message.phone,
        "subject": message.subject,
        "message": message.message,
        "is_read": message.is_read,
        "created_at": message.created_at.isoformat() if message.created_at else None
    }


@router.get("/contact-messages")
def get_contact_messages(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Get contact form messages, newest first"""
    query = db.query(ContactMessage)
    if unread_only:
        query = query.filter(ContactMessage.is_read == False)
    messages = query.order_by(ContactMessage.created_at.desc(), ContactMessage.id.desc()).all()

    unread_count = db.query(ContactMessage).filter(ContactMessage.is_read == False).count()

    return {
        "messages": [_serialize(m) for m in messages],
        "unread_count": unread_count
    }


@router.patch("/contact-messages/{message_id}/read")
def mark_contact_message_read(
    message_id: int,
    is_read: Optional[bool] = True,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Mark message as read (or unread with ?is_read=false)"""
    message = db.query(ContactMessage).filter(ContactMessage.id == message_id).first()
    if not message:
        raise NotFoundError("Message not found")

    message.is_read = is_read
    db.commit()
    db.refresh(message)
    return _serialize(message)
