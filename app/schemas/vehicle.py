from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class ModelOption(BaseModel):
    model: str
    mpg_combined: float


class VehicleIn(BaseModel):
    year: int = Field(..., ge=2010, le=2026)
    make: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    mpg_combined: float = Field(..., gt=0)
    mpg_city: Optional[int] = Field(None, gt=0)
    mpg_highway: Optional[int] = Field(None, gt=0)
    fuel_type: Optional[str] = None
    cylinders: Optional[int] = Field(None, ge=0)
    displacement: Optional[float] = Field(None, ge=0)
    transmission: Optional[str] = None
    drive_type: Optional[str] = None

    @field_validator('make', 'model')
    def strip_names(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('must not be blank')
        return v


class VehicleOut(VehicleIn):
    id: int


class VehiclePage(BaseModel):
    items: List[VehicleOut]
    total: int
    page: int
    page_size: int


class SyncResult(BaseModel):
    total: int
