from typing import List, Optional

from pydantic import BaseModel, Field


class PaymentNotificationRequest(BaseModel):
    reference: str = Field(min_length=1)

    model_config = {'json_schema_extra': {'example': {'reference': 'txn_0191f0c2a8e47d3b9c5e'}}}


class PaymentNotificationResponse(BaseModel):
    message: str
    ticket_ids: List[int] = []
    success: Optional[bool] = None


class CheckoutResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'checkout_url': 'https://checkout.example.com/pay/abc123',
                'reference': 'txn_0191f0c2a8e47d3b9c5e',
            }
        },
    }

    checkout_url: str
    reference: str
