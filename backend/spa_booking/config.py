from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./spa.db"

    # Security
    SECRET_KEY: str = "change-this-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Business
    BUSINESS_NAME: str = "Serenity Spa"
    BUSINESS_EMAIL: str = "admin@serenityspa.local"  # receives new-booking notices

    # Email (Brevo)
    BREVO_API_KEY: Optional[str] = None
    EMAIL_FROM_ADDRESS: str = "reservas@serenityspa.local"
    EMAIL_FROM_NAME: str = "Serenity Spa"

    # SMS
    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None

    # Scheduling
    SLOT_INTERVAL_MINUTES: int = 30
    NEXT_AVAILABLE_MAX_DAYS: int = 30
    CALENDAR_MAX_DAYS: int = 93

    # Seed admin
    ADMIN_EMAIL: str = "admin@serenityspa.local"
    ADMIN_PASSWORD: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
