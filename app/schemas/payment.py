from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class OffsetPurchase(BaseModel):
    """Checkout and receipt payload; field names follow the web client (camelCase)."""

    model_config = ConfigDict(populate_by_name=True)

    metric_tons: float = Field(..., alias="metricTons", gt=0)
    base_cost: Optional[float] = Field(None, alias="baseCost", ge=0)
    total_cost: float = Field(..., alias="totalCost", gt=0)
    payment_type: Literal["one-time", "subscription"] = Field(..., alias="paymentType")
    email: EmailStr


class CheckoutSession(BaseModel):
    url: str


class ReceiptResult(BaseModel):
    success: bool
