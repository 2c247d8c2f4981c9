from enum import StrEnum


class TransactionType(StrEnum):
    PURCHASE = 'PURCHASE'
    RESALE = 'RESALE'
    FUND = 'FUND'
    WITHDRAW = 'WITHDRAW'
