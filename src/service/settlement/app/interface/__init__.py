"""Application layer interfaces (Ports)"""

from src.service.settlement.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.settlement.app.interface.i_notification_dispatcher import (
    INotificationDispatcher,
)
from src.service.settlement.app.interface.i_payment_gateway import IPaymentGateway
from src.service.settlement.app.interface.i_pin_hasher import IPinHasher
from src.service.settlement.app.interface.i_task_queue import ITaskQueue
from src.service.settlement.app.interface.i_ticket_inventory_command_repo import (
    ITicketInventoryCommandRepo,
)
from src.service.settlement.app.interface.i_ticket_query_repo import ITicketQueryRepo
from src.service.settlement.app.interface.i_transaction_command_repo import (
    ITransactionCommandRepo,
)
from src.service.settlement.app.interface.i_transaction_query_repo import ITransactionQueryRepo
from src.service.settlement.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.settlement.app.interface.i_wallet_command_repo import IWalletCommandRepo

__all__ = [
    'IEventQueryRepo',
    'INotificationDispatcher',
    'IPaymentGateway',
    'IPinHasher',
    'ITaskQueue',
    'ITicketInventoryCommandRepo',
    'ITicketQueryRepo',
    'ITransactionCommandRepo',
    'ITransactionQueryRepo',
    'IUserQueryRepo',
    'IWalletCommandRepo',
]
