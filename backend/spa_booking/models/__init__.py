from spa_booking.models.user import User
from spa_booking.models.service import Service
from spa_booking.models.availability import WeeklyAvailability, BlockedInterval
from spa_booking.models.reservation import (
    Reservation, ReservationHistory, ReservationStatus, BookingChannel, ACTIVE_STATUSES
)
from spa_booking.models.contact import ContactMessage
