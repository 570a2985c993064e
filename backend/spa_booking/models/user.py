from sqlalchemy import Column, Integer, String, Boolean, DateTime
from datetime import datetime
from spa_booking.database import Base


class User(Base):
    """Back-office administrator"""
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    
    created_at = Column(DateTime, default=datetime.utcnow)
