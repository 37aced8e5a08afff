from pydantic import BaseModel, Field


class EmissionsRequest(BaseModel):
    annual_miles: float = Field(..., gt=0, description="Miles driven per year")
    mpg_combined: float = Field(..., gt=0, description="Combined fuel economy")


class EmissionsOut(BaseModel):
    gallons: float
    lbs_co2: float
    tons_co2: float


class QuoteRequest(BaseModel):
    tons_co2: float = Field(..., ge=0, description="Annual emissions in US short tons")
    offset_percentage: float = Field(100, gt=0, le=100)


class QuoteOut(BaseModel):
    metric_tons: float
    base_cost: float
    total_cost: float
    monthly_cost: float
    permit_cost_per_ton: float
