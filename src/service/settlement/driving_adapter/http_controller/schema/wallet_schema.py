from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, SecretStr

from src.service.settlement.app.dto.wallet_transaction_view import WalletTransactionView


class WalletBalanceResponse(BaseModel):
    balance: int


class WalletPinStatusResponse(BaseModel):
    has_pin: bool


class FundWalletRequest(BaseModel):
    amount: int = Field(ge=1)


class WithdrawRequest(BaseModel):
    amount: int = Field(ge=1)
    pin: SecretStr
    account_number: str = Field(pattern=r'^\d+$')
    bank_code: str = Field(pattern=r'^\d+$')
    narration: Optional[str] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'amount': 5000,
                'pin': '1234',
                'account_number': '0123456789',
                'bank_code': '044',
                'narration': 'Weekly payout',
            }
        }
    }


class PayoutResponse(BaseModel):
    status: bool
    message: str
    reference: str


class WithdrawResponse(BaseModel):
    message: str
    reference: str
    payout: PayoutResponse


class SetWalletPinRequest(BaseModel):
    new_pin: SecretStr
    old_pin: Optional[SecretStr] = None


class MessageResponse(BaseModel):
    message: str


class WalletTransactionResponse(BaseModel):
    id: int
    reference: str
    type: str
    status: str
    amount: int
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    ticket_codes: List[str] = []
    created_at: Optional[datetime] = None

    @classmethod
    def from_view(cls, view: WalletTransactionView) -> 'WalletTransactionResponse':
        return cls(
            id=view.id,
            reference=view.reference,
            type=str(view.type),
            status=str(view.status),
            amount=view.amount,
            event_id=view.event_id,
            event_name=view.event_name,
            buyer_id=view.buyer_id,
            buyer_name=view.buyer_name,
            buyer_email=view.buyer_email,
            ticket_codes=list(view.ticket_codes),
            created_at=view.created_at,
        )
