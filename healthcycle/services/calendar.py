"""
Integrated calendar across periodic services and lifecycle schedules.

Items are flattened, filtered to a date range, sorted by date, grouped by
ISO date and summarised the way dashboards consume them.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, timedelta

from pydantic import BaseModel, Field

from healthcycle.config import get_config
from healthcycle.config import today as current_date
from healthcycle.domain.errors import ScheduleValidationError
from healthcycle.domain.models import CandidateSchedule, PeriodicService, ServiceType
from healthcycle.services.periodic_services import project


class CalendarItem(BaseModel):
    date: date
    service_name: str
    service_type: str
    service_id: str | None = None
    days_until: int
    is_overdue: bool


class CalendarSummary(BaseModel):
    total_items: int
    total_dates: int
    overdue_count: int
    upcoming_count: int


class Calendar(BaseModel):
    """Flat and date-grouped views of the same items."""

    items: list[CalendarItem] = Field(default_factory=list)
    summary: CalendarSummary

    def grouped(self) -> dict[str, list[CalendarItem]]:
        groups: dict[str, list[CalendarItem]] = defaultdict(list)
        for item in self.items:
            groups[item.date.isoformat()].append(item)
        return dict(groups)


def _service_type_value(service_type: ServiceType | str) -> str:
    return service_type.value if isinstance(service_type, ServiceType) else service_type


def build_calendar(
    services: Iterable[PeriodicService],
    start: date | None = None,
    end: date | None = None,
    *,
    schedules: Iterable[CandidateSchedule] = (),
    today: date | None = None,
) -> Calendar:
    """
    Calendar for [start, end], defaulting to today through one year ahead.

    Only active services are projected. Candidate schedules are added as
    vaccination items.
    """
    reference = today if today is not None else current_date()
    start = start or reference
    end = end or reference + timedelta(days=get_config().scheduling.projection_horizon_days)
    if end < start:
        raise ScheduleValidationError(f"calendar end {end} is before start {start}")

    horizon_days = max((end - reference).days, 0)
    items: list[CalendarItem] = []

    for service in services:
        if not service.active:
            continue
        for occurrence in project(service, horizon_days, today=reference):
            if start <= occurrence.date <= end:
                items.append(
                    CalendarItem(
                        date=occurrence.date,
                        service_name=service.service_name,
                        service_type=_service_type_value(service.service_type),
                        service_id=service.service_id,
                        days_until=occurrence.days_until,
                        is_overdue=occurrence.days_until < 0,
                    )
                )

    for schedule in schedules:
        if start <= schedule.recommended_date <= end:
            days_until = (schedule.recommended_date - reference).days
            items.append(
                CalendarItem(
                    date=schedule.recommended_date,
                    service_name=f"{schedule.service_name} {schedule.dose_number}차 접종",
                    service_type=ServiceType.VACCINATION.value,
                    service_id=schedule.rule_key,
                    days_until=days_until,
                    is_overdue=days_until < 0,
                )
            )

    items.sort(key=lambda item: item.date)
    upcoming_window = get_config().scheduling.upcoming_window_days
    summary = CalendarSummary(
        total_items=len(items),
        total_dates=len({item.date for item in items}),
        overdue_count=sum(1 for item in items if item.is_overdue),
        upcoming_count=sum(
            1 for item in items if not item.is_overdue and item.days_until <= upcoming_window
        ),
    )
    return Calendar(items=items, summary=summary)
