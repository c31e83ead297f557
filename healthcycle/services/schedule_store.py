"""
Persistence boundary for computed lifecycle schedules.

Storage belongs to the caller; this module fixes the upsert contract
(key = subject id, rule key, dose number) so repeated runs converge to the
same stored rows, and ships an in-memory implementation.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Literal, Protocol

import structlog
from pydantic import BaseModel, Field

from healthcycle.domain.errors import NotFoundError
from healthcycle.domain.models import CandidateSchedule, PeriodicService

logger = structlog.get_logger(__name__)

ScheduleKey = tuple[str, str, int]


class StoredSchedule(BaseModel):
    """Persisted row for one (subject, rule, dose)."""

    subject_id: str
    candidate: CandidateSchedule
    status: Literal["pending", "completed", "skipped"] = "pending"
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def key(self) -> ScheduleKey:
        return (self.subject_id, self.candidate.rule_key, self.candidate.dose_number)


class SaveSummary(BaseModel):
    saved: int = 0
    errors: int = 0


class ScheduleStore(Protocol):
    """Protocol for schedule storage; implementations must upsert idempotently."""

    def upsert(self, subject_id: str, candidate: CandidateSchedule) -> StoredSchedule: ...

    def get(self, subject_id: str, rule_key: str, dose_number: int) -> StoredSchedule | None: ...


class InMemoryScheduleStore:
    """Dict-backed ScheduleStore, used by tests and the demo."""

    def __init__(self) -> None:
        self._rows: dict[ScheduleKey, StoredSchedule] = {}
        self.logger = logger.bind(component="schedule_store")

    def upsert(self, subject_id: str, candidate: CandidateSchedule) -> StoredSchedule:
        key = (subject_id, candidate.rule_key, candidate.dose_number)
        existing = self._rows.get(key)
        if existing is not None:
            # Keep status; refresh the recommendation
            row = existing.model_copy(
                update={"candidate": candidate, "updated_at": datetime.now(UTC)}
            )
            self.logger.debug("schedule_updated", key=key)
        else:
            row = StoredSchedule(subject_id=subject_id, candidate=candidate)
            self.logger.debug("schedule_inserted", key=key)
        self._rows[key] = row
        return row

    def get(self, subject_id: str, rule_key: str, dose_number: int) -> StoredSchedule | None:
        return self._rows.get((subject_id, rule_key, dose_number))

    def for_subject(self, subject_id: str) -> list[StoredSchedule]:
        return [row for key, row in self._rows.items() if key[0] == subject_id]

    def __len__(self) -> int:
        return len(self._rows)


def save_candidates(
    store: ScheduleStore, subject_id: str, candidates: Iterable[CandidateSchedule]
) -> SaveSummary:
    """Upsert every candidate; a failing row is counted and the rest still saved."""
    summary = SaveSummary()
    for candidate in candidates:
        try:
            store.upsert(subject_id, candidate)
            summary.saved += 1
        except Exception as e:
            logger.exception(
                "schedule_save_failed",
                subject_id=subject_id,
                rule_key=candidate.rule_key,
                dose=candidate.dose_number,
                error=str(e),
            )
            summary.errors += 1

    logger.info(
        "schedules_saved", subject_id=subject_id, saved=summary.saved, errors=summary.errors
    )
    return summary


class InMemoryServiceStore:
    """Per-owner periodic service records keyed by service id."""

    def __init__(self) -> None:
        self._services: dict[str, PeriodicService] = {}

    def put(self, service: PeriodicService) -> PeriodicService:
        if service.service_id is None:
            raise ValueError("stored services need a service_id")
        self._services[service.service_id] = service
        return service

    def get(self, service_id: str, owner_id: str) -> PeriodicService:
        service = self._services.get(service_id)
        if service is None or service.owner_id != owner_id:
            raise NotFoundError(f"service {service_id} not found for owner {owner_id}")
        return service

    def list_for_owner(
        self, owner_id: str, *, active: bool | None = None
    ) -> list[PeriodicService]:
        services = [s for s in self._services.values() if s.owner_id == owner_id]
        if active is not None:
            services = [s for s in services if s.active is active]
        return sorted(services, key=lambda s: s.next_service_date)
