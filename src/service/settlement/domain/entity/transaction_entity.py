from datetime import datetime, timezone
from typing import Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import InvariantViolationError
from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType


REFERENCE_PREFIX: dict[TransactionType, str] = {
    TransactionType.PURCHASE: 'txn',
    TransactionType.RESALE: 'resale',
    TransactionType.FUND: 'fund',
    TransactionType.WITHDRAW: 'withdraw',
}


def generate_reference(transaction_type: TransactionType) -> str:
    return f'{REFERENCE_PREFIX[transaction_type]}_{uuid_utils.uuid7().hex}'


def _validate_amount(instance: object, attribute: attrs.Attribute, value: int) -> None:
    if value <= 0:
        raise InvariantViolationError('Transaction amount must be positive')


@attrs.define
class Transaction:
    """
    Ledger entry keyed by a unique reference

    The reference doubles as the idempotency key shared with the payment gateway.
    Status only ever moves PENDING -> SUCCESS or PENDING -> FAILED.
    """

    reference: str
    type: TransactionType
    amount: int = attrs.field(validator=_validate_amount)
    user_id: int
    event_id: Optional[int] = None
    ticket_category_id: Optional[int] = None
    quantity: Optional[int] = None
    status: TransactionStatus = TransactionStatus.PENDING
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def _new(cls, *, transaction_type: TransactionType, **fields) -> 'Transaction':
        now = datetime.now(timezone.utc)
        return cls(
            reference=generate_reference(transaction_type),
            type=transaction_type,
            status=TransactionStatus.PENDING,
            created_at=now,
            updated_at=now,
            **fields,
        )

    @classmethod
    def create_purchase(
        cls,
        *,
        user_id: int,
        event_id: int,
        ticket_category_id: int,
        quantity: int,
        amount: int,
    ) -> 'Transaction':
        return cls._new(
            transaction_type=TransactionType.PURCHASE,
            user_id=user_id,
            event_id=event_id,
            ticket_category_id=ticket_category_id,
            quantity=quantity,
            amount=amount,
        )

    @classmethod
    def create_resale(cls, *, user_id: int, event_id: int, amount: int) -> 'Transaction':
        return cls._new(
            transaction_type=TransactionType.RESALE,
            user_id=user_id,
            event_id=event_id,
            amount=amount,
        )

    @classmethod
    def create_fund(cls, *, user_id: int, amount: int) -> 'Transaction':
        return cls._new(transaction_type=TransactionType.FUND, user_id=user_id, amount=amount)

    @classmethod
    def create_withdrawal(cls, *, user_id: int, amount: int) -> 'Transaction':
        return cls._new(transaction_type=TransactionType.WITHDRAW, user_id=user_id, amount=amount)

    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING

    @property
    def is_settled(self) -> bool:
        return self.status == TransactionStatus.SUCCESS

    def validate_can_settle(self) -> None:
        if self.status == TransactionStatus.FAILED:
            raise InvariantViolationError(
                f'Transaction {self.reference} has failed and cannot be settled'
            )

    def mark_as_success(self) -> 'Transaction':
        return attrs.evolve(
            self, status=TransactionStatus.SUCCESS, updated_at=datetime.now(timezone.utc)
        )

    def mark_as_failed(self) -> 'Transaction':
        return attrs.evolve(
            self, status=TransactionStatus.FAILED, updated_at=datetime.now(timezone.utc)
        )
