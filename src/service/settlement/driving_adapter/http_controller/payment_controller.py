from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.command.verify_and_settle_use_case import VerifyAndSettleUseCase
from src.service.settlement.driving_adapter.http_controller.schema.payment_schema import (
    PaymentNotificationRequest,
    PaymentNotificationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post(
    '/notification',
    response_model=PaymentNotificationResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_200_OK,
)
@Logger.io
async def payment_notification(
    request: PaymentNotificationRequest,
    use_case: VerifyAndSettleUseCase = Depends(VerifyAndSettleUseCase.depends),
) -> PaymentNotificationResponse:
    """Gateway webhook; safe to deliver more than once for the same reference"""
    with tracer.start_as_current_span('controller.payment_notification') as span:
        span.set_attribute('transaction.reference', request.reference)
        result = await use_case.verify_and_settle(reference=request.reference)
        return PaymentNotificationResponse(**result)
