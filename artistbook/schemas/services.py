# artistbook/schemas/services.py

from typing import Optional
from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    artist_id: str
    name: str
    description: Optional[str] = None
    duration: int = Field(ge=15, le=480)
    price: float = Field(ge=0)
    deposit: float = Field(default=0, ge=0)

    model_config = {"from_attributes": True}


class ServiceUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = Field(default=None, ge=15, le=480)
    price: Optional[float] = Field(default=None, ge=0)
    deposit: Optional[float] = Field(default=None, ge=0)

    model_config = {"from_attributes": True}


class ServiceRead(BaseModel):
    id: int
    artist_id: str
    name: str
    description: Optional[str] = None
    duration: int
    price: float
    deposit: float
    is_active: bool

    model_config = {"from_attributes": True}
