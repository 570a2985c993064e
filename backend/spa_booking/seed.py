"""
Seed the database with the default catalog, opening hours and admin user.

Safe to run more than once: existing rows are left untouched.

    python -m spa_booking.seed
"""
from sqlalchemy.orm import Session
from spa_booking.config import settings
from spa_booking.database import SessionLocal, engine, Base
from spa_booking.models import Service, User, WeeklyAvailability
from spa_booking.utils.security import get_password_hash
import logging

logger = logging.getLogger(__name__)

DEFAULT_SERVICES = [
    {
        "name": "Relaxing Massage",
        "description": "Gentle full-body massage to release everyday tension.",
        "duration_minutes": 60,
        "price": 80,
    },
    {
        "name": "Therapeutic Massage",
        "description": "Deep work on contractures and chronic muscle pain.",
        "duration_minutes": 90,
        "price": 120,
    },
    {
        "name": "Sports Massage",
        "description": "Recovery and injury prevention for active people.",
        "duration_minutes": 75,
        "price": 100,
    },
    {
        "name": "Hot Stone Massage",
        "description": "Heated volcanic stones combined with relaxing techniques.",
        "duration_minutes": 90,
        "price": 140,
    },
]

# 0=Sunday ... 6=Saturday
DEFAULT_SCHEDULE = [
    {"day_of_week": 0, "is_active": False, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 1, "is_active": True, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 2, "is_active": True, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 3, "is_active": True, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 4, "is_active": True, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 5, "is_active": True, "open_time": "09:00", "close_time": "18:00"},
    {"day_of_week": 6, "is_active": True, "open_time": "10:00", "close_time": "16:00"},
]


def seed_services(db: Session) -> int:
    created = 0
    for data in DEFAULT_SERVICES:
        if not db.query(Service).filter(Service.name == data["name"]).first():
            db.add(Service(**data))
            created += 1
    return created


def seed_schedule(db: Session) -> int:
    created = 0
    for data in DEFAULT_SCHEDULE:
        exists = db.query(WeeklyAvailability).filter(
            WeeklyAvailability.day_of_week == data["day_of_week"]
        ).first()
        if not exists:
            db.add(WeeklyAvailability(**data))
            created += 1
    return created


def seed_admin(db: Session) -> bool:
    if not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_PASSWORD not set - skipping admin user")
        return False

    email = settings.ADMIN_EMAIL.lower()
    if db.query(User).filter(User.email == email).first():
        return False

    db.add(User(
        email=email,
        hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
        full_name="Administrator",
        is_active=True
    ))
    return True


def seed(db: Session = None):
    owns_session = db is None
    db = db or SessionLocal()
    try:
        services = seed_services(db)
        days = seed_schedule(db)
        admin = seed_admin(db)
        db.commit()
        logger.info("Seeded %s service(s), %s schedule day(s), admin user: %s",
                    services, days, "created" if admin else "unchanged")
        return {"services": services, "schedule_days": days, "admin_created": admin}
    except Exception:
        db.rollback()
        raise
    finally:
        if owns_session:
            db.close()


if __name__ == "__main__":
    from spa_booking.utils.logging_config import setup_logging

    setup_logging()
    Base.metadata.create_all(bind=engine)
    seed()
