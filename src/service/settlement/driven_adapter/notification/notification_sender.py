from typing import Any, Optional

import httpx

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger


class NotificationSender:
    """
    Delivers one queued message

    Posts to the external notification service when NOTIFICATION_SERVICE_URL is
    set, otherwise only logs the message. Raising lets the task queue retry.
    """

    def __init__(
        self,
        *,
        service_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.service_url = (
            service_url if service_url is not None else settings.NOTIFICATION_SERVICE_URL
        )
        self._transport = transport

    async def send(self, message: dict[str, Any]) -> None:
        if not self.service_url:
            Logger.base.info(
                f'📧 [NOTIFY] {message["template"]} -> {message["to_email"]}: '
                f'{message["subject"]}'
            )
            return

        async with httpx.AsyncClient(timeout=10.0, transport=self._transport) as client:
            response = await client.post(self.service_url, json=message)
            response.raise_for_status()
        Logger.base.info(f'📧 [NOTIFY] Sent {message["template"]} to {message["to_email"]}')
