import copy
import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from core.prometheus_metrics import catalog_loads_total, vehicle_lookups_total
from services.catalog_builder import model_sort_key
from services.exceptions import CatalogNotFoundError

logger = logging.getLogger(__name__)


class VehicleCatalog:
    """
    Read-only access to the vehicle catalog artifact.

    One instance is created at application start and shared by every request.
    The artifact is read lazily on the first lookup, at most once per instance,
    from the first readable path in `paths`. Lookups hand out copies so callers
    can never mutate the cached catalog.
    """

    def __init__(self, paths: Sequence[Union[str, Path]]):
        self.paths = [Path(p) for p in paths]
        self.loaded_from: Optional[Path] = None
        self._data: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._data is not None

    def load(self) -> Dict[str, Any]:
        if self._data is not None:
            return self._data

        with self._lock:
            if self._data is None:
                self._data = self._read_first_available()
        return self._data

    def _read_first_available(self) -> Dict[str, Any]:
        for path in self.paths:
            try:
                with path.open("r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, ValueError) as e:
                logger.debug(f"Catalog candidate {path} unusable: {e}")
                continue
            if not isinstance(data, dict):
                logger.debug(f"Catalog candidate {path} unusable: top level is not an object")
                continue

            self.loaded_from = path
            catalog_loads_total.labels(status="success").inc()
            logger.info(f"Loaded vehicle data from {path}: {len(data.get('years', []))} years")
            return data

        catalog_loads_total.labels(status="not_found").inc()
        raise CatalogNotFoundError(self.paths)

    def _makes_for(self, year: int) -> Dict[str, Dict[str, Any]]:
        # JSON object keys are strings; years are exposed as ints
        return self.load().get("vehicles", {}).get(str(year)) or {}

    def list_years(self) -> List[int]:
        vehicle_lookups_total.labels(operation="years", source="catalog").inc()
        return [int(year) for year in self.load().get("years", [])]

    def list_makes(self, year: int) -> List[str]:
        vehicle_lookups_total.labels(operation="makes", source="catalog").inc()
        return sorted(self._makes_for(year))

    def list_models(self, year: int, make: str) -> List[Dict[str, Any]]:
        vehicle_lookups_total.labels(operation="models", source="catalog").inc()
        models = self._makes_for(year).get(make) or {}
        return [
            copy.deepcopy(vehicle)
            for _, vehicle in sorted(models.items(), key=lambda item: model_sort_key(item[0]))
        ]
