from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Text
from sqlalchemy.orm import relationship
from datetime import datetime, timedelta
import enum
from spa_booking.database import Base

class ReservationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


# Statuses that hold the slot
ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


class BookingChannel(str, enum.Enum):
    PUBLIC = "public"
    ADMIN = "admin"


class Reservation(Base):
    __tablename__ = "reservations"
    
    id = Column(Integer, primary_key=True, index=True)
    client_name = Column(String(100), nullable=False, index=True)
    client_email = Column(String(255), nullable=False, index=True)
    client_phone = Column(String(20), nullable=False)
    start_at = Column(DateTime, nullable=False, index=True)
    status = Column(Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)
    channel = Column(Enum(BookingChannel), default=BookingChannel.PUBLIC, nullable=False)
    notes = Column(Text)
    
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    service = relationship("Service", back_populates="reservations")
    history = relationship(
        "ReservationHistory",
        back_populates="reservation",
        order_by="ReservationHistory.id",
        cascade="all, delete-orphan",
    )

    @property
    def end_at(self):
        return self.start_at + timedelta(minutes=self.service.duration_minutes)

    @property
    def is_active(self):
        return self.status in ACTIVE_STATUSES


class ReservationHistory(Base):
    __tablename__ = "reservation_history"
    
    id = Column(Integer, primary_key=True, index=True)
    action = Column(String(50), nullable=False)  # CREATED, CONFIRMED, EDITED, ...
    detail = Column(Text)
    actor = Column(String(255), nullable=False)
    
    reservation_id = Column(Integer, ForeignKey("reservations.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    # Relationships
    reservation = relationship("Reservation", back_populates="history")
