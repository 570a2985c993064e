from typing import List, Optional
from sqlalchemy.orm import Session
from spa_booking.errors import InvalidRangeError, NotFoundError, OverlappingBlockError
from spa_booking.models.availability import BlockedInterval
from spa_booking.schemas.availability import BlockedIntervalInput
from spa_booking.services.availability_service import active_blocks_overlapping
from spa_booking.services.booking_service import schedule_lock
import logging

logger = logging.getLogger(__name__)


def list_blocked_intervals(db: Session) -> List[BlockedInterval]:
    return db.query(BlockedInterval).order_by(BlockedInterval.start_at.desc()).all()


def get_blocked_interval(db: Session, interval_id: int) -> BlockedInterval:
    interval = db.query(BlockedInterval).filter(BlockedInterval.id == interval_id).first()
    if not interval:
        raise NotFoundError("Blocked period not found")
    return interval


def ensure_no_overlapping_block(db: Session, start_at, end_at, exclude_id: Optional[int] = None):
    """Active blocked periods may not overlap each other"""
    conflicts = active_blocks_overlapping(db, start_at, end_at, exclude_id=exclude_id)
    if conflicts:
        other = conflicts[0]
        raise OverlappingBlockError(
            f"An active block already covers {other.start_at.isoformat(timespec='minutes')} "
            f"to {other.end_at.isoformat(timespec='minutes')} ({other.reason})",
            details={"conflicting_id": other.id}
        )


def validate_blocked_interval(db: Session, data: BlockedIntervalInput, existing_id: Optional[int] = None):
    if data.end_at <= data.start_at:
        raise InvalidRangeError()
    ensure_no_overlapping_block(db, data.start_at, data.end_at, exclude_id=existing_id)


def create_blocked_interval(db: Session, data: BlockedIntervalInput) -> BlockedInterval:
    with schedule_lock(db):
        validate_blocked_interval(db, data)

        interval = BlockedInterval(
            start_at=data.start_at,
            end_at=data.end_at,
            reason=data.reason,
            description=data.description,
            is_active=True
        )
        db.add(interval)
        db.commit()
    db.refresh(interval)
    logger.info("Blocked %s - %s (%s)", interval.start_at, interval.end_at, interval.reason)
    return interval


def update_blocked_interval(db: Session, interval_id: int, data: BlockedIntervalInput) -> BlockedInterval:
    if data.end_at <= data.start_at:
        raise InvalidRangeError()

    with schedule_lock(db):
        interval = get_blocked_interval(db, interval_id)
        # Inactive periods are checked again when they are switched back on
        if interval.is_active:
            ensure_no_overlapping_block(db, data.start_at, data.end_at, exclude_id=interval.id)

        interval.start_at = data.start_at
        interval.end_at = data.end_at
        interval.reason = data.reason
        interval.description = data.description
        db.commit()
    db.refresh(interval)
    return interval


def set_blocked_interval_active(db: Session, interval_id: int, is_active: bool) -> BlockedInterval:
    with schedule_lock(db):
        interval = get_blocked_interval(db, interval_id)
        if is_active and not interval.is_active:
            ensure_no_overlapping_block(db, interval.start_at, interval.end_at, exclude_id=interval.id)

        interval.is_active = is_active
        db.commit()
    db.refresh(interval)
    logger.info("Blocked period %s %s", interval.id, "activated" if is_active else "deactivated")
    return interval


def delete_blocked_interval(db: Session, interval_id: int):
    interval = get_blocked_interval(db, interval_id)
    db.delete(interval)
    db.commit()
    logger.info("Blocked period %s deleted", interval_id)
