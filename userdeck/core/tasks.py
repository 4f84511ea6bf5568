"""In-process background task queue with retry and exponential backoff.

A single worker runs in the app lifespan (see ``api.app``).  Jobs that keep
failing are logged at error level once attempts are exhausted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from userdeck.core.config import get_settings
from userdeck.core.logging import get_logger

logger = get_logger(__name__)

_MAX_BACKOFF_SECONDS = 60.0


@dataclass
class Job:
    name: str
    func: Callable[..., Awaitable[Any]]
    args: tuple[Any, ...]


class TaskQueue:
    def __init__(self, max_attempts: int = 3, backoff_seconds: float = 1.0) -> None:
        self._queue: asyncio.Queue[Job] = asyncio.Queue()
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def enqueue(self, name: str, func: Callable[..., Awaitable[Any]], *args: Any) -> None:
        self._queue.put_nowait(Job(name=name, func=func, args=args))
        logger.debug("Task queued", task=name, pending=self.pending)

    async def run(self) -> None:
        """Worker loop: consume jobs forever (cancel to stop)."""
        logger.info("Task queue worker started")
        while True:
            job = await self._queue.get()
            try:
                await self.execute(job)
            finally:
                self._queue.task_done()

    async def execute(self, job: Job) -> bool:
        """Run *job* with retries. Returns whether it eventually succeeded."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                await job.func(*job.args)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                if attempt == self.max_attempts:
                    logger.error(
                        "Task failed — giving up",
                        task=job.name,
                        attempts=attempt,
                        error=str(exc),
                    )
                    return False
                delay = min(self.backoff_seconds * 2 ** (attempt - 1), _MAX_BACKOFF_SECONDS)
                logger.warning(
                    "Task failed — retrying",
                    task=job.name,
                    attempt=attempt,
                    retry_in=delay,
                    error=str(exc),
                )
                await asyncio.sleep(delay)
            else:
                logger.info("Task completed", task=job.name, attempts=attempt)
                return True
        return False

    async def join(self) -> None:
        """Block until every queued job has been processed."""
        await self._queue.join()


_queue: TaskQueue | None = None


def get_task_queue() -> TaskQueue:
    global _queue
    if _queue is None:
        settings = get_settings()
        _queue = TaskQueue(
            max_attempts=settings.task_max_attempts,
            backoff_seconds=settings.task_backoff_seconds,
        )
    return _queue
