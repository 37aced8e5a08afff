from prometheus_client import Counter, generate_latest
from prometheus_client.core import CollectorRegistry

# Prometheus Registry
REGISTRY = CollectorRegistry()

# Catalog / lookup metrics
vehicle_lookups_total = Counter(
    'carbon_vehicle_lookups_total',
    'Vehicle lookup calls',
    ['operation', 'source'],
    registry=REGISTRY
)

catalog_loads_total = Counter(
    'carbon_catalog_loads_total',
    'Vehicle catalog load attempts',
    ['status'],
    registry=REGISTRY
)

epa_sync_vehicles_total = Counter(
    'carbon_epa_sync_vehicles_total',
    'Vehicles upserted by the EPA sync',
    registry=REGISTRY
)

# Business metrics
checkout_sessions_total = Counter(
    'carbon_checkout_sessions_total',
    'Offset checkout sessions created',
    ['payment_type', 'status'],
    registry=REGISTRY
)

receipts_sent_total = Counter(
    'carbon_receipts_sent_total',
    'Offset receipt emails',
    ['status'],
    registry=REGISTRY
)

rate_limit_exceeded_total = Counter(
    'carbon_rate_limit_exceeded_total',
    'Total rate limit violations',
    ['endpoint'],
    registry=REGISTRY
)


def get_prometheus_metrics() -> bytes:
    """Get Prometheus metrics in text format"""
    return generate_latest(REGISTRY)
