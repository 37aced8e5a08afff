"""
Vehicle catalog builder.

Turns the EPA fuel-economy CSV (https://fueleconomy.gov/feg/epadata/vehicles.csv)
into the nested year -> make -> model lookup artifact served by the API:

    {"years": [2026, 2025, ...],
     "vehicles": {"2026": {"Toyota": {"Camry": {...vehicle...}}}}}

Rows outside 2010-2026, without make/model, or without a positive combined MPG
are dropped silently; only a missing file, a file pandas cannot tokenize or a
header without the required columns is an error.
"""

import json
import logging
import math
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from core.environment import get_catalog_paths
from services.exceptions import InputNotFoundError, MalformedInputError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("year", "make", "model", "comb08")
MIN_YEAR = 2010
MAX_YEAR = 2026

VehicleKey = Tuple[int, str, str]


class DedupePolicy(str, Enum):
    """Which EPA configuration represents a (year, make, model) when several exist."""
    LOWEST_MPG = "lowest_mpg"
    HIGHEST_MPG = "highest_mpg"
    LAST = "last"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value).strip()


def _parse_float(value: Any) -> Optional[float]:
    text = _clean(value)
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _parse_int(value: Any) -> Optional[int]:
    number = _parse_float(value)
    return int(number) if number is not None else None


def load_vehicle_frame(source) -> pd.DataFrame:
    """Read an EPA-format CSV (path or file-like) with every column as text."""
    try:
        frame = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        raise MalformedInputError(REQUIRED_COLUMNS)
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise MalformedInputError(reason=f"CSV could not be parsed: {e}") from e

    frame.columns = frame.columns.str.strip()
    missing = [col for col in REQUIRED_COLUMNS if col not in frame.columns]
    if missing:
        raise MalformedInputError(missing)
    return frame


def read_vehicle_records(csv_path: Union[str, Path]) -> pd.DataFrame:
    path = Path(csv_path)
    if not path.is_file():
        raise InputNotFoundError(f"CSV file not found: {path}")
    logger.info(f"Reading CSV file {path}")
    return load_vehicle_frame(path)


def project_record(row: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Filters and projects one CSV row into a vehicle dict.

    Returns None for rows the catalog does not keep. Optional fields are left out
    (never null) when the source cell is empty or unparseable.
    """
    year = _parse_int(row.get("year"))
    if year is None or not MIN_YEAR <= year <= MAX_YEAR:
        return None

    make = _clean(row.get("make"))
    model = _clean(row.get("model"))
    if not make or not model:
        return None

    mpg_combined = _parse_float(row.get("comb08"))
    if mpg_combined is None or mpg_combined <= 0:
        return None

    vehicle: Dict[str, Any] = {
        "year": year,
        "make": make,
        "model": model,
        "mpg_combined": mpg_combined,
    }

    mpg_city = _parse_int(row.get("city08"))
    if mpg_city is not None:
        vehicle["mpg_city"] = mpg_city

    mpg_highway = _parse_int(row.get("highway08"))
    if mpg_highway is not None:
        vehicle["mpg_highway"] = mpg_highway

    fuel_type = _clean(row.get("fuelType1")) or _clean(row.get("fuelType"))
    if fuel_type:
        vehicle["fuel_type"] = fuel_type

    cylinders = _parse_int(row.get("cylinders"))
    if cylinders is not None:
        vehicle["cylinders"] = cylinders

    displacement = _parse_float(row.get("displ"))
    if displacement is not None:
        vehicle["displacement"] = displacement

    transmission = _clean(row.get("trans_dscr")) or _clean(row.get("trany"))
    if transmission:
        vehicle["transmission"] = transmission

    drive_type = _clean(row.get("drive"))
    if drive_type:
        vehicle["drive_type"] = drive_type

    return vehicle


def project_frame(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Projects every row of the frame, dropping the ones the filter rejects."""
    vehicles = []
    for row in frame.to_dict(orient="records"):
        vehicle = project_record(row)
        if vehicle is not None:
            vehicles.append(vehicle)
    return vehicles


def _replaces(candidate: Dict[str, Any], current: Dict[str, Any], policy: DedupePolicy) -> bool:
    if policy == DedupePolicy.LAST:
        return True
    if policy == DedupePolicy.HIGHEST_MPG:
        return candidate["mpg_combined"] > current["mpg_combined"]
    # strict comparison: the first configuration seen keeps a tie
    return candidate["mpg_combined"] < current["mpg_combined"]


def dedupe_vehicles(
    vehicles: Iterable[Dict[str, Any]],
    policy: DedupePolicy = DedupePolicy.LOWEST_MPG,
) -> Dict[VehicleKey, Dict[str, Any]]:
    selected: Dict[VehicleKey, Dict[str, Any]] = {}
    for vehicle in vehicles:
        key = (vehicle["year"], vehicle["make"], vehicle["model"])
        current = selected.get(key)
        if current is None or _replaces(vehicle, current, policy):
            selected[key] = vehicle
    return selected


def model_sort_key(model: str) -> Tuple[str, str]:
    return (model.casefold(), model)


def build_catalog(
    vehicles: Iterable[Dict[str, Any]],
    dedupe: DedupePolicy = DedupePolicy.LOWEST_MPG,
) -> Dict[str, Any]:
    """Assembles the nested catalog; keys are inserted in listing order."""
    selected = dedupe_vehicles(vehicles, dedupe)

    ordered_keys = sorted(selected, key=lambda k: (-k[0], k[1], model_sort_key(k[2])))
    nested: Dict[str, Dict[str, Dict[str, Dict[str, Any]]]] = {}
    for key in ordered_keys:
        year, make, model = key
        nested.setdefault(str(year), {}).setdefault(make, {})[model] = selected[key]

    return {
        "years": sorted({year for year, _, _ in selected}, reverse=True),
        "vehicles": nested,
    }


def default_output_paths() -> List[Path]:
    return get_catalog_paths()


def write_catalog(catalog: Dict[str, Any], output_paths: Sequence[Union[str, Path]]) -> List[Path]:
    content = json.dumps(catalog, indent=2)
    written: List[Path] = []
    for raw_path in output_paths:
        path = Path(raw_path)
        if any(path.resolve() == done.resolve() for done in written):
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(f"Generated {path}")
        written.append(path)
    return written


def generate_catalog(
    csv_path: Union[str, Path],
    output_paths: Optional[Sequence[Union[str, Path]]] = None,
    dedupe: DedupePolicy = DedupePolicy.LOWEST_MPG,
) -> Dict[str, Any]:
    """Reads the CSV, builds the catalog and writes it to every output path."""
    frame = read_vehicle_records(csv_path)
    logger.info(f"Processing {len(frame)} records...")

    vehicles = project_frame(frame)
    logger.info(f"Filtered to {len(vehicles)} vehicles")

    catalog = build_catalog(vehicles, dedupe)
    written = write_catalog(catalog, output_paths or default_output_paths())

    unique_count = sum(
        len(models) for makes in catalog["vehicles"].values() for models in makes.values()
    )
    logger.info(f"Years: {len(catalog['years'])}, unique vehicles: {unique_count}")

    return {
        "records": len(frame),
        "vehicles": unique_count,
        "years": len(catalog["years"]),
        "outputs": [str(p) for p in written],
    }
