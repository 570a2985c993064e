"""Database configuration and session setup"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from spa_booking.config import settings

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # Request handlers run in a threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
    echo=False,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
