from typing import Any

from src.platform.logging.loguru_io import Logger
from src.service.settlement.app.dto.settlement_notice import SettlementNotice
from src.service.settlement.app.interface.i_task_queue import ITaskQueue
from src.service.settlement.domain.entity.user_entity import User
from src.service.settlement.driven_adapter.notification.notification_messages import (
    build_settlement_messages,
    build_withdrawal_message,
)
from src.service.settlement.driven_adapter.notification.notification_sender import (
    NotificationSender,
)


NOTIFICATION_TASK = 'notification.send'


class NotificationDispatcherImpl:
    """
    Turns settlement outcomes into queued messages

    Never raises: a full queue or a bad message is logged and the caller moves on.
    """

    def __init__(self, *, task_queue: ITaskQueue, sender: NotificationSender) -> None:
        self.task_queue = task_queue
        self.task_queue.register_handler(task_name=NOTIFICATION_TASK, handler=sender.send)

    def _enqueue_all(self, messages: list[dict[str, Any]]) -> None:
        for message in messages:
            if not self.task_queue.enqueue(task_name=NOTIFICATION_TASK, payload=message):
                Logger.base.warning(
                    f'⚠️ [NOTIFY] Dropped {message["template"]} for {message["to_email"]}'
                )

    async def notify_settlement(self, *, notice: SettlementNotice) -> None:
        try:
            messages = build_settlement_messages(notice)
        except Exception as e:
            Logger.base.error(
                f'❌ [NOTIFY] Could not build messages for {notice.transaction.reference}: {e}'
            )
            return
        self._enqueue_all(messages)

    async def notify_withdrawal(self, *, user: User, amount: int, reference: str) -> None:
        self._enqueue_all([build_withdrawal_message(user=user, amount=amount, reference=reference)])
