from fastapi import APIRouter

from core.environment import get_offset_fee_rate, get_permit_cost_per_ton
from exceptions import ValidationError
from schemas.emissions import EmissionsOut, EmissionsRequest, QuoteOut, QuoteRequest
from services.emissions import calculate_emissions, quote_offset

router = APIRouter(prefix="/api/emissions", tags=["emissions"])


@router.post("/calculate", response_model=EmissionsOut)
async def calculate(req: EmissionsRequest):
    try:
        return calculate_emissions(req.annual_miles, req.mpg_combined).to_dict()
    except ValueError as e:
        raise ValidationError(str(e))


@router.post("/quote", response_model=QuoteOut)
async def quote(req: QuoteRequest):
    try:
        result = quote_offset(
            req.tons_co2,
            offset_percentage=req.offset_percentage,
            permit_cost_per_ton=get_permit_cost_per_ton(),
            fee_rate=get_offset_fee_rate(),
        )
    except ValueError as e:
        raise ValidationError(str(e), "offset_percentage")
    return result.to_dict()
