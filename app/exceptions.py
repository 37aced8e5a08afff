import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from services.exceptions import (
    CatalogNotFoundError,
    ContentNotFoundError,
    DatabaseQueryError,
    EpaSyncError,
    PaymentProviderError,
    ReceiptDeliveryError,
    VehicleNotFoundError,
)

logger = logging.getLogger(__name__)


class ValidationError(HTTPException):
    def __init__(self, message: str, field: str = None):
        detail = {"error": "validation_error", "message": message}
        if field:
            detail["field"] = field
        super().__init__(status_code=422, detail=detail)


async def validation_exception_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "message": exc.detail.get("message", "Validation error"),
            "field": exc.detail.get("field"),
        },
    )


async def catalog_not_found_handler(request: Request, exc: CatalogNotFoundError):
    logger.error(str(exc))
    return JSONResponse(status_code=503, content={"error": str(exc)})


async def content_not_found_handler(request: Request, exc: ContentNotFoundError):
    return JSONResponse(status_code=404, content={"message": "Content not found"})


async def vehicle_not_found_handler(request: Request, exc: VehicleNotFoundError):
    return JSONResponse(status_code=404, content={"message": str(exc)})


async def provider_error_handler(request: Request, exc: Exception):
    """Payment, receipt and EPA download failures: upstream service errors."""
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"error": str(exc)})


async def database_error_handler(request: Request, exc: DatabaseQueryError):
    logger.error(f"Database error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Database error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(CatalogNotFoundError, catalog_not_found_handler)
    app.add_exception_handler(ContentNotFoundError, content_not_found_handler)
    app.add_exception_handler(VehicleNotFoundError, vehicle_not_found_handler)
    app.add_exception_handler(PaymentProviderError, provider_error_handler)
    app.add_exception_handler(ReceiptDeliveryError, provider_error_handler)
    app.add_exception_handler(EpaSyncError, provider_error_handler)
    app.add_exception_handler(DatabaseQueryError, database_error_handler)
