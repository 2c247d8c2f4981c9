"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.database.db_setting import Database
from src.platform.task_queue.in_memory_task_queue import InMemoryTaskQueue
from src.service.settlement.app.service.payout_dispatcher import PayoutDispatcher
from src.service.settlement.driven_adapter.gateway.payment_gateway_client_impl import (
    PaymentGatewayClientImpl,
)
from src.service.settlement.driven_adapter.notification.notification_dispatcher_impl import (
    NotificationDispatcherImpl,
)
from src.service.settlement.driven_adapter.notification.notification_sender import (
    NotificationSender,
)
from src.service.settlement.driven_adapter.repo.ticket_query_repo_impl import TicketQueryRepoImpl
from src.service.settlement.driven_adapter.repo.transaction_query_repo_impl import (
    TransactionQueryRepoImpl,
)
from src.service.settlement.driven_adapter.repo.user_query_repo_impl import UserQueryRepoImpl
from src.service.settlement.driven_adapter.security.bcrypt_pin_hasher import BcryptPinHasher
from src.service.settlement.driving_adapter.scheduler.checkout_expiry_sweeper import (
    CheckoutExpirySweeper,
)
from src.service.settlement.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Read replica when configured, primary otherwise
    read_database = providers.Singleton(Database, read_only=True)

    # Query repositories (stateless - use session_factory per-request)
    ticket_query_repo = providers.Singleton(
        TicketQueryRepoImpl, session_factory=read_database.provided.session
    )
    user_query_repo = providers.Singleton(
        UserQueryRepoImpl, session_factory=read_database.provided.session
    )
    transaction_query_repo = providers.Singleton(
        TransactionQueryRepoImpl, session_factory=read_database.provided.session
    )

    # Payment gateway and outbound money
    payment_gateway = providers.Singleton(PaymentGatewayClientImpl)
    payout_dispatcher = providers.Singleton(PayoutDispatcher, payment_gateway=payment_gateway)

    # Background work (the queue's workers are started by main.py lifespan)
    task_queue = providers.Singleton(InMemoryTaskQueue)
    notification_sender = providers.Singleton(NotificationSender)
    notification_dispatcher = providers.Singleton(
        NotificationDispatcherImpl, task_queue=task_queue, sender=notification_sender
    )
    checkout_expiry_sweeper = providers.Singleton(
        CheckoutExpirySweeper, task_queue=task_queue, payment_gateway=payment_gateway
    )

    # Security
    pin_hasher = providers.Singleton(BcryptPinHasher)
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()
