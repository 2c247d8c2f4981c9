#!/usr/bin/env python3
"""
Checkout Expiry Script
Fail unpaid purchases older than CHECKOUT_EXPIRY_MINUTES and release their tickets

Runs the same sweep the API process schedules on its task queue, batch after
batch until nothing is left to expire. Useful from cron when the API runs with
several workers or is down.
"""

import asyncio

from src.platform.config.core_setting import settings
from src.platform.database.db_setting import dispose_engines, get_session_maker
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.service.settlement.app.command.expire_stale_checkouts_use_case import (
    ExpireStaleCheckoutsUseCase,
)
from src.service.settlement.driven_adapter.gateway.payment_gateway_client_impl import (
    PaymentGatewayClientImpl,
)


async def main():
    print(f'⌛ Expiring checkouts older than {settings.CHECKOUT_EXPIRY_MINUTES} minutes...')
    gateway = PaymentGatewayClientImpl()
    total = 0
    try:
        while True:
            async with get_session_maker()() as session:
                expired = await ExpireStaleCheckoutsUseCase(
                    uow=SqlAlchemyUnitOfWork(session), payment_gateway=gateway
                ).expire_stale_checkouts()
            total += expired
            # A batch with nothing expired only holds paid or unverifiable checkouts
            if expired == 0:
                break
    except Exception as e:
        print(f'❌ Expiry failed: {e}')
        exit(1)
    finally:
        await dispose_engines()

    print(f'✅ Expired {total} checkouts')


if __name__ == '__main__':
    asyncio.run(main())
