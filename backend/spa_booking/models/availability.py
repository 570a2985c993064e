from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from datetime import datetime
from spa_booking.database import Base


class WeeklyAvailability(Base):
    """Opening hours for one weekday (0=Sunday, 6=Saturday)"""
    __tablename__ = "weekly_availability"
    
    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, unique=True, nullable=False)
    is_active = Column(Boolean, default=True)
    open_time = Column(String(5), nullable=False, default="09:00")  # "HH:MM"
    close_time = Column(String(5), nullable=False, default="18:00")
    
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BlockedInterval(Base):
    """Ad-hoc closed period (vacations, maintenance)"""
    __tablename__ = "blocked_intervals"
    
    id = Column(Integer, primary_key=True, index=True)
    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=False, index=True)
    reason = Column(String(255), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
