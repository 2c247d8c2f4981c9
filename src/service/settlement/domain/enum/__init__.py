from src.service.settlement.domain.enum.transaction_status import TransactionStatus
from src.service.settlement.domain.enum.transaction_type import TransactionType
from src.service.settlement.domain.enum.user_role import UserRole

__all__ = ['TransactionStatus', 'TransactionType', 'UserRole']
