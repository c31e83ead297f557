"""
Population-wide recomputation with per-subject failure isolation.

Key patterns:
- Result values instead of exceptions for expected per-item failures
- Structured concurrency with asyncio.TaskGroup
- Bounded fan-out (semaphore) and per-item timeouts

Every subject's computation is independent and pure, so work is pushed to
threads with no coordination beyond the concurrency bound. A thread cannot
be interrupted, so a timed-out item keeps its slot until the thread returns.
"""

import asyncio
import contextlib
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Generic, TypeVar

import structlog

from healthcycle.config import BatchConfig
from healthcycle.config import today as current_date
from healthcycle.domain.errors import SchedulingError
from healthcycle.domain.models import CompletionRecord, Subject
from healthcycle.services.lifecycle_scheduler import LifecycleScheduler, LifecycleScheduleResult

logger = structlog.get_logger(__name__)

ValueT = TypeVar("ValueT")


@dataclass(frozen=True)
class Result(Generic[ValueT]):
    """
    Outcome of one subject's computation in a batch.

    Holds either the computed value or the error that stopped it, tagged
    with the subject label. A batch never raises because of one subject's
    bad data; the failure travels in that subject's Result instead.
    """

    label: str
    value: ValueT | None = None
    error: Exception | None = None

    def __post_init__(self) -> None:
        if self.value is not None and self.error is not None:
            raise ValueError("Result cannot have both value and error")
        if self.value is None and self.error is None:
            raise ValueError("Result must have either value or error")

    @classmethod
    def ok(cls, label: str, value: ValueT) -> "Result[ValueT]":
        return cls(label=label, value=value)

    @classmethod
    def err(cls, label: str, error: Exception) -> "Result[ValueT]":
        return cls(label=label, error=error)

    def is_ok(self) -> bool:
        return self.error is None

    def is_err(self) -> bool:
        return self.error is not None

    def unwrap(self) -> ValueT:
        """Value of a successful run; a failure is re-raised naming the subject."""
        if self.error is not None:
            raise SchedulingError(f"subject {self.label}: {self.error}") from self.error
        return self.value  # type: ignore

    def unwrap_err(self) -> Exception:
        if self.error is None:
            raise ValueError(f"subject {self.label} completed without error")
        return self.error


@dataclass
class BatchItem:
    """One subject plus its completion history."""

    subject: Subject
    records: Sequence[CompletionRecord] = field(default_factory=tuple)

    @property
    def label(self) -> str:
        return self.subject.subject_id or self.subject.birth_date.isoformat()


class BatchScheduler:
    """Runs a LifecycleScheduler over many subjects concurrently."""

    def __init__(self, scheduler: LifecycleScheduler, config: BatchConfig | None = None) -> None:
        self.scheduler = scheduler
        self.config = config or BatchConfig()
        self.logger = logger.bind(component="batch_scheduler")

    async def _run_one(
        self, item: BatchItem, today: date, semaphore: asyncio.Semaphore
    ) -> Result[LifecycleScheduleResult]:
        async with semaphore:
            worker = asyncio.ensure_future(
                asyncio.to_thread(self.scheduler.recommend, item.subject, item.records, today=today)
            )
            try:
                value = await asyncio.wait_for(
                    asyncio.shield(worker), timeout=self.config.item_timeout_seconds
                )
                return Result.ok(item.label, value)
            except TimeoutError as e:
                self.logger.warning("batch_item_timeout", subject=item.label)
                # Slot is released only once the thread has returned
                with contextlib.suppress(Exception):
                    await worker
                return Result.err(item.label, e)
            except Exception as e:
                self.logger.warning("batch_item_failed", subject=item.label, error=str(e))
                return Result.err(item.label, e)

    async def run(
        self, items: Iterable[BatchItem], *, today: date | None = None
    ) -> list[Result[LifecycleScheduleResult]]:
        """Compute every item; results keep the input order."""
        reference = today if today is not None else current_date()
        semaphore = asyncio.Semaphore(self.config.max_concurrent_items)
        start_time = time.perf_counter()

        async with asyncio.TaskGroup() as task_group:
            tasks = [
                task_group.create_task(self._run_one(item, reference, semaphore))
                for item in items
            ]

        results = [task.result() for task in tasks]
        failed = sum(1 for result in results if result.is_err())
        self.logger.info(
            "batch_completed",
            total=len(results),
            failed=failed,
            duration_seconds=round(time.perf_counter() - start_time, 3),
        )
        return results

    def run_sync(
        self, items: Iterable[BatchItem], *, today: date | None = None
    ) -> list[Result[LifecycleScheduleResult]]:
        """Blocking wrapper for callers without an event loop."""
        return asyncio.run(self.run(items, today=today))
