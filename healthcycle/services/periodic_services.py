"""
Periodic service lifecycle, forward projection and reminder gating.

Services are immutable records; every transition returns a new, validated
PeriodicService for the caller to persist.

State machine:
    active --complete(date)--> active   (last/next service dates recomputed)
    active --deactivate()----> inactive (terminal here)
"""

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

import structlog
from pydantic import BaseModel, Field

from healthcycle.config import get_config
from healthcycle.config import today as current_date
from healthcycle.domain.errors import ScheduleValidationError
from healthcycle.domain.models import (
    CycleType,
    PeriodicService,
    ProjectedOccurrence,
    ReminderStatus,
    ServiceState,
    ServiceType,
)
from healthcycle.services.cycle_calculator import compute_next

logger = structlog.get_logger(__name__)


def _rebuild(service: PeriodicService, **changes: Any) -> PeriodicService:
    # model_copy(update=...) would skip validation
    return PeriodicService.model_validate({**service.model_dump(), **changes})


def _require_active(service: PeriodicService, action: str) -> None:
    if not service.active:
        raise ScheduleValidationError(
            f"cannot {action} inactive service {service.service_id or service.service_name}"
        )


def create_periodic_service(
    owner_id: str,
    service_name: str,
    cycle_type: CycleType,
    *,
    service_type: ServiceType | str = ServiceType.OTHER,
    cycle_days: int | None = None,
    last_service_date: date | None = None,
    reminder_days_before: int | None = None,
    reminder_enabled: bool = True,
    family_member_id: str | None = None,
    notes: str | None = None,
    service_id: str | None = None,
    today: date | None = None,
) -> PeriodicService:
    """New active service whose next date is computed from its last date (or today)."""
    if reminder_days_before is None:
        reminder_days_before = get_config().scheduling.default_reminder_days_before

    next_date = compute_next(last_service_date, cycle_type, cycle_days, today=today)
    service = PeriodicService(
        service_id=service_id,
        owner_id=owner_id,
        family_member_id=family_member_id,
        service_type=service_type,
        service_name=service_name,
        cycle_type=cycle_type,
        cycle_days=cycle_days,
        last_service_date=last_service_date,
        next_service_date=next_date,
        reminder_days_before=reminder_days_before,
        reminder_enabled=reminder_enabled,
        notes=notes,
    )
    logger.info(
        "periodic_service_created",
        service_name=service_name,
        cycle_type=service.cycle_type.value,
        next_service_date=next_date.isoformat(),
    )
    return service


def complete_service(
    service: PeriodicService,
    completed_date: date | None = None,
    *,
    today: date | None = None,
) -> PeriodicService:
    """Record a completion and roll the next service date forward."""
    _require_active(service, "complete")
    reference = today if today is not None else current_date()
    completion = completed_date or reference

    next_date = compute_next(completion, service.cycle_type, service.cycle_days, today=reference)
    logger.info(
        "periodic_service_completed",
        service_id=service.service_id,
        completed_date=completion.isoformat(),
        next_service_date=next_date.isoformat(),
    )
    return _rebuild(service, last_service_date=completion, next_service_date=next_date)


class ServiceUpdate(BaseModel):
    """Partial update; only fields explicitly set are applied."""

    service_name: str | None = None
    cycle_type: CycleType | None = None
    cycle_days: int | None = None
    last_service_date: date | None = None
    next_service_date: date | None = None
    reminder_days_before: int | None = Field(default=None, ge=0)
    reminder_enabled: bool | None = None
    notes: str | None = None


_SCHEDULE_FIELDS = {"last_service_date", "cycle_type", "cycle_days"}
# Setting these to None means "leave unchanged"
_REQUIRED_FIELDS = {
    "service_name",
    "cycle_type",
    "next_service_date",
    "reminder_days_before",
    "reminder_enabled",
}


def update_service(
    service: PeriodicService,
    update: ServiceUpdate,
    *,
    today: date | None = None,
) -> PeriodicService:
    """
    Apply a partial update.

    Changing the last date or the cycle recomputes next_service_date; an
    explicit next_service_date is honoured only when none of those change.
    """
    _require_active(service, "update")
    changes = {
        field: value
        for field, value in update.model_dump(include=update.model_fields_set).items()
        if value is not None or field not in _REQUIRED_FIELDS
    }

    if _SCHEDULE_FIELDS & changes.keys():
        last_date = changes.get("last_service_date", service.last_service_date)
        cycle_type = changes.get("cycle_type", service.cycle_type)
        cycle_days = changes.get("cycle_days", service.cycle_days)
        changes["next_service_date"] = compute_next(last_date, cycle_type, cycle_days, today=today)

    updated = _rebuild(service, **changes)
    logger.info("periodic_service_updated", service_id=service.service_id, fields=sorted(changes))
    return updated


def deactivate_service(service: PeriodicService) -> PeriodicService:
    """Soft-deactivate; inactive services are never hard-deleted here."""
    if not service.active:
        return service
    logger.info("periodic_service_deactivated", service_id=service.service_id)
    return _rebuild(service, state=ServiceState.INACTIVE)


def project(
    service: PeriodicService,
    horizon_days: int | None = None,
    *,
    today: date | None = None,
) -> list[ProjectedOccurrence]:
    """
    Future occurrences of a service up to today + horizon_days.

    Starts from the stored next_service_date and re-applies the cycle
    calculator to each projected date.
    """
    if horizon_days is None:
        horizon_days = get_config().scheduling.projection_horizon_days
    if horizon_days < 0:
        raise ScheduleValidationError(f"horizon_days must be >= 0, got {horizon_days}")

    reference = today if today is not None else current_date()
    horizon_end = reference + timedelta(days=horizon_days)

    occurrences: list[ProjectedOccurrence] = []
    current = service.next_service_date
    while current <= horizon_end:
        occurrences.append(
            ProjectedOccurrence(date=current, days_until=(current - reference).days)
        )
        current = compute_next(current, service.cycle_type, service.cycle_days, today=reference)
    return occurrences


def evaluate_reminder(
    due_date: date,
    reminder_days_before: int,
    *,
    today: date | None = None,
) -> ReminderStatus:
    """Upcoming once today reaches the reminder date; overdue once past the due date."""
    if reminder_days_before < 0:
        raise ScheduleValidationError(
            f"reminder_days_before must be >= 0, got {reminder_days_before}"
        )
    reference = today if today is not None else current_date()
    reminder_date = due_date - timedelta(days=reminder_days_before)
    return ReminderStatus(
        is_upcoming=reference >= reminder_date,
        is_overdue=reference > due_date,
    )


def service_reminder(service: PeriodicService, *, today: date | None = None) -> ReminderStatus:
    """Reminder flags for a stored service; disabled reminders are never upcoming."""
    status = evaluate_reminder(
        service.next_service_date, service.reminder_days_before, today=today
    )
    if service.reminder_enabled and service.active:
        return status
    return ReminderStatus(is_upcoming=False, is_overdue=status.is_overdue)


def upcoming_services(
    services: Iterable[PeriodicService],
    days: int | None = None,
    *,
    today: date | None = None,
) -> list[PeriodicService]:
    """Active, reminder-enabled services due within [today, today + days]."""
    if days is None:
        days = get_config().scheduling.upcoming_window_days
    reference = today if today is not None else current_date()
    window_end = reference + timedelta(days=days)

    due = [
        service
        for service in services
        if service.active
        and service.reminder_enabled
        and reference <= service.next_service_date <= window_end
    ]
    return sorted(due, key=lambda s: s.next_service_date)
