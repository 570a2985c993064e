from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from spa_booking.database import get_db
from spa_booking.errors import NotFoundError
from spa_booking.models.service import Service
from spa_booking.models.user import User
from spa_booking.schemas.service import ServiceCreate, ServiceResponse, ServiceUpdate
from spa_booking.utils.security import get_current_admin
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[ServiceResponse])
def list_all_services(db: Session = Depends(get_db), admin: User = Depends(get_current_admin)):
    """Every service, including inactive ones"""
    return db.query(Service).order_by(Service.name).all()


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
def create_service(
    data: ServiceCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    service = Service(**data.model_dump())
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info("Service %s created by %s", service.name, admin.email)
    return service


@router.patch("/{service_id}", response_model=ServiceResponse)
def update_service(
    service_id: int,
    data: ServiceUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(get_current_admin)
):
    """Edit or deactivate a service; existing reservations keep their booking"""
    service = db.query(Service).filter(Service.id == service_id).first()
    if not service:
        raise NotFoundError("Service not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(service, field, value)

    db.commit()
    db.refresh(service)
    return service
