from dataclasses import dataclass, asdict

LBS_CO2_PER_GALLON = 19.6  # pounds of CO2 per gallon of gasoline burned
LBS_PER_TON = 2000
METRIC_TONS_PER_US_TON = 0.907185
MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class EmissionsResult:
    gallons: float
    lbs_co2: float
    tons_co2: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class OffsetQuote:
    metric_tons: float
    base_cost: float
    total_cost: float
    monthly_cost: float
    permit_cost_per_ton: float

    def to_dict(self) -> dict:
        return asdict(self)


def calculate_emissions(annual_miles: float, mpg_combined: float) -> EmissionsResult:
    """Annual CO2 (US tons) for a vehicle driven `annual_miles` at `mpg_combined`."""
    if annual_miles <= 0:
        raise ValueError("annual_miles must be greater than 0")
    if mpg_combined <= 0:
        raise ValueError("mpg_combined must be greater than 0")

    gallons = annual_miles / mpg_combined
    lbs_co2 = gallons * LBS_CO2_PER_GALLON
    return EmissionsResult(gallons=gallons, lbs_co2=lbs_co2, tons_co2=lbs_co2 / LBS_PER_TON)


def quote_offset(
    tons_co2: float,
    offset_percentage: float = 100,
    permit_cost_per_ton: float = 25.0,
    fee_rate: float = 0.10,
) -> OffsetQuote:
    """
    Price of offsetting part of a yearly footprint.

    US tons are converted to metric tons, priced at `permit_cost_per_ton`, and a
    service fee of `fee_rate` is added. Subscriptions pay the total in twelve parts.
    """
    if tons_co2 < 0:
        raise ValueError("tons_co2 cannot be negative")
    if not 0 < offset_percentage <= 100:
        raise ValueError("offset_percentage must be in (0, 100]")

    metric_tons = tons_co2 * METRIC_TONS_PER_US_TON * (offset_percentage / 100)
    base_cost = metric_tons * permit_cost_per_ton
    total_cost = base_cost * (1 + fee_rate)
    return OffsetQuote(
        metric_tons=metric_tons,
        base_cost=base_cost,
        total_cost=total_cost,
        monthly_cost=total_cost / MONTHS_PER_YEAR,
        permit_cost_per_ton=permit_cost_per_ton,
    )
