"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.settlement.driven_adapter.model.event_model import EventModel
from src.service.settlement.driven_adapter.model.ticket_category_model import (
    TicketCategoryModel,
)
from src.service.settlement.driven_adapter.model.ticket_model import TicketModel
from src.service.settlement.driven_adapter.model.transaction_model import TransactionModel
from src.service.settlement.driven_adapter.model.transaction_ticket_model import (
    TransactionTicketModel,
)
from src.service.settlement.driven_adapter.model.user_model import UserModel
from src.service.settlement.driven_adapter.model.wallet_model import WalletModel

__all__ = [
    'EventModel',
    'TicketCategoryModel',
    'TicketModel',
    'TransactionModel',
    'TransactionTicketModel',
    'UserModel',
    'WalletModel',
]
