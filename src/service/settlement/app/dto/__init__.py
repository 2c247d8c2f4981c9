from src.service.settlement.app.dto.gateway_result import (
    InitiateResult,
    PayoutResult,
    VerifyResult,
)
from src.service.settlement.app.dto.settlement_notice import SellerPayout, SettlementNotice
from src.service.settlement.app.dto.wallet_transaction_view import WalletTransactionView

__all__ = [
    'InitiateResult',
    'PayoutResult',
    'SellerPayout',
    'SettlementNotice',
    'VerifyResult',
    'WalletTransactionView',
]
