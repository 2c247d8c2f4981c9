"""
Payment Gateway HTTP client

Endpoints (bearer secret):
- POST {base}/api/v1/initiate                      -> {checkout_url}
- GET  {base}/api/v1/transactions/verify?reference -> {status, message, data?}
- POST {base}/api/v1/payout                        -> {status, message, data?}

Transport failures, timeouts, non-2xx statuses and malformed bodies all raise
GatewayError. A verification the gateway answers with status=false is returned
as a VerifyResult so the caller decides what a rejection means.
"""

from typing import Any, Optional

import httpx
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import GatewayError
from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.dto.gateway_result import InitiateResult, PayoutResult, VerifyResult
from src.service.settlement.domain.value_object.payout_destination import (
    Customer,
    PayoutDestination,
)


class PaymentGatewayClientImpl:
    def __init__(
        self,
        *,
        base_url: Optional[str] = None,
        secret: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.PAYMENT_GATEWAY_URL).rstrip('/')
        self._secret = secret or settings.PAYMENT_GATEWAY_SECRET.get_secret_value()
        self.timeout = httpx.Timeout(timeout_seconds or settings.PAYMENT_GATEWAY_TIMEOUT_SECONDS)
        self._transport = transport
        self.tracer = trace.get_tracer(__name__)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                'Authorization': f'Bearer {self._secret}',
                'Content-Type': 'application/json',
            },
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
        params: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        with self.tracer.start_as_current_span(
            'gateway.request', attributes={'http.method': method, 'gateway.path': path}
        ):
            try:
                async with self._client() as client:
                    response = await client.request(method, path, json=json, params=params)
            except httpx.TimeoutException as e:
                raise GatewayError(f'Payment gateway timed out on {method} {path}') from e
            except httpx.HTTPError as e:
                raise GatewayError(f'Payment gateway request failed: {e}') from e

            if response.is_error:
                Logger.base.error(
                    f'❌ [GATEWAY] {method} {path} -> {response.status_code}: '
                    f'{response.text[:500]}'
                )
                raise GatewayError(
                    f'Payment gateway returned {response.status_code} on {method} {path}'
                )

            try:
                body = response.json()
            except ValueError as e:
                raise GatewayError('Payment gateway returned a non-JSON body') from e
            if not isinstance(body, dict):
                raise GatewayError('Payment gateway returned an unexpected body')

            Logger.base.info(f'✅ [GATEWAY] {method} {path} -> {response.status_code}')
            return body

    @Logger.io
    async def initiate(
        self,
        *,
        reference: str,
        amount: int,
        customer: Customer,
        narration: str,
        metadata: dict[str, Any],
    ) -> InitiateResult:
        body = await self._request(
            'POST',
            '/api/v1/initiate',
            json={
                'customer': customer.to_gateway_payload(),
                'amount': amount,
                'currency': settings.PAYMENT_CURRENCY,
                'reference': reference,
                'processor': settings.PAYMENT_PROCESSOR,
                'narration': narration,
                'notification_url': settings.NOTIFICATION_URL,
                'metadata': metadata,
            },
        )
        checkout_url = body.get('checkout_url') or (body.get('data') or {}).get('checkout_url')
        if not isinstance(checkout_url, str) or not checkout_url:
            raise GatewayError('Payment gateway did not return a checkout_url')
        return InitiateResult(checkout_url=checkout_url, reference=reference)

    @Logger.io
    async def verify(self, *, reference: str) -> VerifyResult:
        body = await self._request(
            'GET', '/api/v1/transactions/verify', params={'reference': reference}
        )
        status = body.get('status')
        message = body.get('message')
        if not isinstance(status, bool) or not isinstance(message, str):
            raise GatewayError('Payment gateway returned a malformed verification body')
        data = body.get('data')
        return VerifyResult(
            status=status, message=message, data=data if isinstance(data, dict) else {}
        )

    @Logger.io
    async def payout(
        self,
        *,
        reference: str,
        amount: int,
        customer: Customer,
        destination: PayoutDestination,
        narration: str,
        metadata: dict[str, Any],
    ) -> PayoutResult:
        body = await self._request(
            'POST',
            '/api/v1/payout',
            json={
                'customer': customer.to_gateway_payload(),
                'amount': amount,
                'currency': settings.PAYMENT_CURRENCY,
                'destination': destination.to_gateway_payload(),
                'reference': reference,
                'notification_url': settings.NOTIFICATION_URL,
                'narration': narration,
                'metadata': metadata,
            },
        )
        status = body.get('status')
        if not isinstance(status, bool):
            raise GatewayError(f'Payment gateway returned a malformed payout body for {reference}')
        if not status:
            raise GatewayError(body.get('message') or f'Payout {reference} was rejected')
        return PayoutResult(
            status=status, message=str(body.get('message') or ''), reference=reference
        )
