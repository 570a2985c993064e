from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from spa_booking.config import settings
from spa_booking.database import engine, Base, get_db
from spa_booking.errors import BookingError, InternalError, InvalidInputError

# Import all models
from spa_booking.models import (
    User, Service, WeeklyAvailability, BlockedInterval,
    Reservation, ReservationHistory, ContactMessage
)

from spa_booking.tasks.reminders import send_booking_reminders
# Import routes
from spa_booking.routes import auth, public, bookings, availability, services, inbox, dashboard
from spa_booking.utils.logging_config import setup_logging
from spa_booking.utils.security import get_current_admin
import logging

setup_logging()
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.BUSINESS_NAME} Booking API",
    description="Online reservations and back office for a massage studio",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ============== ERROR HANDLERS ==============

@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_dict()})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg", "Invalid value")
        }
        for err in exc.errors()
    ]
    message = errors[0]["message"] if errors else InvalidInputError.default_message
    error = InvalidInputError(message, details={"errors": errors})
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content={"detail": error.to_dict()})

# Include routers
app.include_router(public.router, prefix="/api", tags=["Public"])
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(bookings.router, prefix="/api/admin/reservations", tags=["Reservations"])
app.include_router(availability.router, prefix="/api/admin", tags=["Availability"])
app.include_router(services.router, prefix="/api/admin/services", tags=["Services"])
app.include_router(inbox.router, prefix="/api/admin", tags=["Inbox"])
app.include_router(dashboard.router, prefix="/api/admin", tags=["Dashboard"])


# Root endpoint
@app.get("/")
def root():
    return {
        "message": f"{settings.BUSINESS_NAME} Booking API",
        "status": "running",
        "docs": "/docs"
    }

# Health check
@app.get("/health")
def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.post("/api/tasks/send-reminders")
def trigger_reminders(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """
    Manual trigger for tomorrow's reminders.
    The daily cron job runs ``python -m spa_booking.tasks.reminders`` instead.
    """
    summary = send_booking_reminders(db=db, actor=admin.email)
    return {
        "success": True,
        "reminders_sent": summary["succeeded"],
        "message": f"Successfully sent {summary['succeeded']} reminder(s)",
        "results": summary["results"]
    }
