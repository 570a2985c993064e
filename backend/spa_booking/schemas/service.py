from pydantic import BaseModel, validator
from typing import Optional


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    duration_minutes: int
    price: float
    is_active: bool

    class Config:
        from_attributes = True


class ServiceCreate(BaseModel):
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: float = 0
    is_active: bool = True

    @validator('duration_minutes')
    def duration_positive(cls, v):
        if v <= 0:
            raise ValueError('Duration must be a positive number of minutes')
        return v

    @validator('price')
    def price_not_negative(cls, v):
        if v < 0:
            raise ValueError('Price cannot be negative')
        return v


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration_minutes: Optional[int] = None
    price: Optional[float] = None
    is_active: Optional[bool] = None

    @validator('duration_minutes')
    def duration_positive(cls, v):
        if v is not None and v <= 0:
            raise ValueError('Duration must be a positive number of minutes')
        return v
