"""
Production FastAPI Application

Settlement API plus the in-process task queue that delivers notifications and
runs the periodic checkout expiry sweep.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from granian import Granian
from granian.constants import Interfaces

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.db_setting import dispose_engines, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Settlement Service] Starting up...')

    tracing = TracingConfig(service_name='settlement-service')
    tracing.setup()
    Logger.base.info('📊 [Settlement Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Settlement Service] Dependency injection wired')

    tracing.instrument_sqlalchemy(engine=get_engine())
    Logger.base.info('🗄️  [Settlement Service] Database engine ready + instrumented')

    # Resolve handler owners first so their handlers are registered before workers start
    container.notification_dispatcher()
    sweeper = container.checkout_expiry_sweeper()
    task_queue = container.task_queue()

    async with anyio.create_task_group() as tg:
        await tg.start(task_queue.run)
        await tg.start(sweeper.run)
        Logger.base.info('✅ [Settlement Service] Ready to serve requests')

        yield

        Logger.base.info('🛑 [Settlement Service] Shutting down...')
        sweeper.stop()
        # Workers drain what is already queued, then the task group exits
        await task_queue.close()

    await dispose_engines()
    Logger.base.info('🗄️  [Settlement Service] Database engines disposed')

    tracing.shutdown()
    Logger.base.info('📊 [Settlement Service] Tracing shutdown complete')

    container.unwire()
    container.reset_singletons()

    Logger.base.info('👋 [Settlement Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')


def serve() -> None:
    """Run the API under granian (same as `granian src.main:app --interface asgi`)."""
    Granian(
        'src.main:app',
        address=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        interface=Interfaces.ASGI,
        workers=settings.SERVER_WORKERS,
    ).serve()


if __name__ == '__main__':
    serve()
