from typing import Any, Awaitable, Callable, Protocol


TaskHandler = Callable[[dict[str, Any]], Awaitable[None]]


class ITaskQueue(Protocol):
    def register_handler(self, *, task_name: str, handler: TaskHandler) -> None: ...

    def enqueue(self, *, task_name: str, payload: dict[str, Any]) -> bool:
        """Queue a task without blocking; False when the queue is full or stopped"""
        ...
