import logging

from fastapi import APIRouter, Request
from starlette.concurrency import run_in_threadpool

from middleware.rate_limit import PAYMENT_RATE_LIMIT, limiter
from schemas.payment import CheckoutSession, OffsetPurchase, ReceiptResult
from services.payment_service import PaymentService
from services.receipt_service import ReceiptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/create-session", response_model=CheckoutSession)
@limiter.limit(PAYMENT_RATE_LIMIT)
async def create_session(request: Request, purchase: OffsetPurchase):
    logger.info(f"Creating {purchase.payment_type} checkout for {purchase.metric_tons:.2f} metric tons")
    return await run_in_threadpool(
        PaymentService().create_payment_session,
        purchase.email,
        purchase.metric_tons,
        purchase.total_cost,
        purchase.payment_type,
    )


@router.post("/receipt", response_model=ReceiptResult)
@limiter.limit(PAYMENT_RATE_LIMIT)
async def send_receipt(request: Request, purchase: OffsetPurchase):
    return await run_in_threadpool(
        ReceiptService().send_receipt_email,
        purchase.email,
        purchase.metric_tons,
        purchase.total_cost,
        purchase.payment_type,
    )
