"""
Scheduling services.

This package contains the cycle calculator, the lifecycle recommendation
pipeline, periodic service handling and the batch/persistence boundaries.
"""

from .batch import BatchItem, BatchScheduler, Result
from .calendar import Calendar, CalendarItem, CalendarSummary, build_calendar
from .completion_index import CompletionIndex, build_index
from .cycle_calculator import add_cycle, compute_next
from .lifecycle_scheduler import (
    LifecycleScheduler,
    LifecycleScheduleResult,
    match_rules,
    merge_candidates,
    months_between,
    sequence_dose,
)
from .periodic_services import (
    ServiceUpdate,
    complete_service,
    create_periodic_service,
    deactivate_service,
    evaluate_reminder,
    project,
    service_reminder,
    update_service,
    upcoming_services,
)
from .schedule_store import (
    InMemoryScheduleStore,
    InMemoryServiceStore,
    SaveSummary,
    ScheduleStore,
    save_candidates,
)

__all__ = [
    "BatchItem",
    "BatchScheduler",
    "Calendar",
    "CalendarItem",
    "CalendarSummary",
    "CompletionIndex",
    "InMemoryScheduleStore",
    "InMemoryServiceStore",
    "LifecycleScheduleResult",
    "LifecycleScheduler",
    "Result",
    "SaveSummary",
    "ScheduleStore",
    "ServiceUpdate",
    "add_cycle",
    "build_calendar",
    "build_index",
    "complete_service",
    "compute_next",
    "create_periodic_service",
    "deactivate_service",
    "evaluate_reminder",
    "match_rules",
    "merge_candidates",
    "months_between",
    "project",
    "sequence_dose",
    "service_reminder",
    "update_service",
    "upcoming_services",
]
