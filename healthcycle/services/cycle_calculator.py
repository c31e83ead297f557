"""
Next-occurrence arithmetic for periodic services.

Month and year steps use dateutil.relativedelta so that month ends clamp
(Jan 31 + 1 month = Feb 28/29) instead of overflowing into the next month.
"""

from datetime import date, datetime

import structlog
from dateutil.relativedelta import relativedelta

from healthcycle.config import today as current_date
from healthcycle.domain.errors import ComputationGuardError, ScheduleValidationError
from healthcycle.domain.models import CycleType

logger = structlog.get_logger(__name__)

# Naive attempt plus one corrective pass from today
MAX_CORRECTION_PASSES = 2


def _as_date(value: date | datetime) -> date:
    # Drop any time-of-day component before comparing
    return value.date() if isinstance(value, datetime) else value


def validate_cycle(cycle_type: CycleType, cycle_days: int | None) -> None:
    """Reject a custom cycle without a positive length."""
    if cycle_type is CycleType.CUSTOM and (cycle_days is None or cycle_days <= 0):
        raise ScheduleValidationError(
            f"custom cycle requires a positive cycle_days, got {cycle_days!r}"
        )


def cycle_delta(cycle_type: CycleType, cycle_days: int | None = None) -> relativedelta:
    """Length of one cycle as a relativedelta."""
    match cycle_type:
        case CycleType.DAILY:
            return relativedelta(days=1)
        case CycleType.WEEKLY:
            return relativedelta(days=7)
        case CycleType.MONTHLY:
            return relativedelta(months=1)
        case CycleType.QUARTERLY:
            return relativedelta(months=3)
        case CycleType.YEARLY:
            return relativedelta(years=1)
        case CycleType.CUSTOM:
            validate_cycle(cycle_type, cycle_days)
            return relativedelta(days=cycle_days)
    raise ScheduleValidationError(f"Unknown cycle type: {cycle_type!r}")


def add_cycle(base: date, cycle_type: CycleType, cycle_days: int | None = None) -> date:
    """Naive base + one cycle, without any correction against today."""
    return base + cycle_delta(cycle_type, cycle_days)


def compute_next(
    base_date: date | datetime | None,
    cycle_type: CycleType,
    cycle_days: int | None = None,
    *,
    today: date | None = None,
) -> date:
    """
    Next occurrence of a cycle that is never before today.

    If base + one cycle already lies in the past, the cycle restarts from
    today instead of stacking on a stale base date.

    Args:
        base_date: Date of the last occurrence; None means today
        cycle_type: Recurrence granularity
        cycle_days: Cycle length in days, only used for CUSTOM
        today: Reference date; defaults to today in the configured timezone

    Raises:
        ScheduleValidationError: CUSTOM cycle without a positive cycle_days
        ComputationGuardError: the corrective pass did not reach today
    """
    try:
        cycle_type = CycleType(cycle_type)
    except ValueError as e:
        raise ScheduleValidationError(f"Unknown cycle type: {cycle_type!r}") from e
    validate_cycle(cycle_type, cycle_days)

    reference = _as_date(today) if today is not None else current_date()
    base = _as_date(base_date) if base_date is not None else reference

    for attempt in range(MAX_CORRECTION_PASSES):
        candidate = add_cycle(base, cycle_type, cycle_days)
        if candidate >= reference:
            return candidate

        logger.debug(
            "cycle_self_corrected",
            cycle_type=cycle_type.value,
            stale_base=base.isoformat(),
            naive_candidate=candidate.isoformat(),
            attempt=attempt,
        )
        base = reference

    raise ComputationGuardError(
        f"{cycle_type.value} cycle from {base.isoformat()} did not reach {reference.isoformat()}"
    )
