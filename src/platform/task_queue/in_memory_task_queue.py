"""
In-memory Task Queue

Bounded fire-and-forget queue for work that must not hold up a request, such as
notifications sent after a settlement commits.

Architecture:
- enqueue() -> send_nowait() into an anyio memory object stream (never blocks)
- N workers consume clones of the receive stream inside run()'s task group
- Failed tasks are retried with linear backoff, then dead-lettered and logged

Drop Policy:
- Full or closed queue: enqueue() returns False and the drop is logged and counted
"""

from collections import deque
from typing import Any, Deque, Dict, Optional

import anyio
import attrs
from anyio import WouldBlock, create_memory_object_stream
from anyio.abc import TaskStatus
from anyio.streams.memory import MemoryObjectReceiveStream
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.settlement_metrics import metrics
from src.platform.observability.tracing import extract_trace_context, inject_trace_context
from src.service.settlement.app.interface.i_task_queue import TaskHandler


DEAD_LETTER_CAPACITY = 100

tracer = trace.get_tracer(__name__)


@attrs.define
class QueuedTask:
    task_name: str
    payload: Dict[str, Any]
    attempts: int = 0
    last_error: Optional[str] = None
    trace_headers: Dict[str, str] = attrs.field(factory=dict)


class InMemoryTaskQueue:
    def __init__(
        self,
        *,
        max_size: Optional[int] = None,
        workers: Optional[int] = None,
        max_attempts: Optional[int] = None,
        retry_backoff_seconds: Optional[float] = None,
    ) -> None:
        self.max_size = max_size if max_size is not None else settings.TASK_QUEUE_MAX_SIZE
        self.workers = workers if workers is not None else settings.TASK_QUEUE_WORKERS
        self.max_attempts = (
            max_attempts if max_attempts is not None else settings.TASK_QUEUE_MAX_ATTEMPTS
        )
        self.retry_backoff_seconds = (
            retry_backoff_seconds
            if retry_backoff_seconds is not None
            else settings.TASK_QUEUE_RETRY_BACKOFF_SECONDS
        )
        self._send_stream, self._receive_stream = create_memory_object_stream[QueuedTask](
            max_buffer_size=self.max_size
        )
        self._handlers: Dict[str, TaskHandler] = {}
        self._closed = False
        self.dead_letters: Deque[QueuedTask] = deque(maxlen=DEAD_LETTER_CAPACITY)

    def register_handler(self, *, task_name: str, handler: TaskHandler) -> None:
        self._handlers[task_name] = handler

    def enqueue(self, *, task_name: str, payload: Dict[str, Any]) -> bool:
        if self._closed:
            Logger.base.warning(f'⚠️ [TASK-QUEUE] Queue closed, dropping {task_name}')
            metrics.tasks_dropped.labels(task=task_name).inc()
            return False

        try:
            self._send_stream.send_nowait(
                QueuedTask(
                    task_name=task_name, payload=payload, trace_headers=inject_trace_context()
                )
            )
        except WouldBlock:
            Logger.base.warning(
                f'⚠️ [TASK-QUEUE] Queue full ({self.max_size}), dropping {task_name}'
            )
            metrics.tasks_dropped.labels(task=task_name).inc()
            return False
        except (anyio.ClosedResourceError, anyio.BrokenResourceError):
            Logger.base.warning(f'⚠️ [TASK-QUEUE] Queue closed, dropping {task_name}')
            metrics.tasks_dropped.labels(task=task_name).inc()
            return False

        metrics.tasks_enqueued.labels(task=task_name).inc()
        metrics.queue_depth.set(self.pending)
        return True

    @property
    def pending(self) -> int:
        return self._send_stream.statistics().current_buffer_used

    async def run(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        """
        Consume tasks until close() is called and the queue has drained

        Usage:
            async with anyio.create_task_group() as tg:
                await tg.start(queue.run)
                ...
                await queue.close()
        """
        async with anyio.create_task_group() as tg:
            for worker_id in range(self.workers):
                tg.start_soon(self._worker, worker_id, self._receive_stream.clone())
            # Workers own clones; the stream ends once every clone is closed
            self._receive_stream.close()
            Logger.base.info(f'🚀 [TASK-QUEUE] Started {self.workers} workers')
            task_status.started()
        Logger.base.info('🛑 [TASK-QUEUE] All workers stopped')

    async def close(self) -> None:
        """Stop accepting tasks; workers finish what is already queued"""
        self._closed = True
        await self._send_stream.aclose()

    async def _worker(self, worker_id: int, receive_stream: MemoryObjectReceiveStream[QueuedTask]):
        async with receive_stream:
            async for task in receive_stream:
                metrics.queue_depth.set(self.pending)
                await self._execute(task, worker_id=worker_id)

    async def _execute(self, task: QueuedTask, *, worker_id: int) -> None:
        handler = self._handlers.get(task.task_name)
        if handler is None:
            task.last_error = 'no handler registered'
            self._dead_letter(task)
            return

        while task.attempts < self.max_attempts:
            task.attempts += 1
            try:
                with tracer.start_as_current_span(
                    f'task.{task.task_name}',
                    context=extract_trace_context(headers=task.trace_headers),
                    attributes={'task.attempt': task.attempts},
                ):
                    await handler(task.payload)
                return
            except Exception as e:
                task.last_error = f'{type(e).__name__}: {e}'
                Logger.base.warning(
                    f'⚠️ [TASK-QUEUE] worker={worker_id} {task.task_name} '
                    f'attempt {task.attempts}/{self.max_attempts} failed: {task.last_error}'
                )
                if task.attempts < self.max_attempts:
                    await anyio.sleep(self.retry_backoff_seconds * task.attempts)

        self._dead_letter(task)

    def _dead_letter(self, task: QueuedTask) -> None:
        self.dead_letters.append(task)
        metrics.tasks_dead_lettered.labels(task=task.task_name).inc()
        Logger.base.error(
            f'❌ [TASK-QUEUE] Dead-lettered {task.task_name} after {task.attempts} attempts: '
            f'{task.last_error}'
        )
