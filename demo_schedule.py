"""
End-to-end walkthrough of the scheduling engine.

This script shows:
1. Configuration loading
2. Lifecycle recommendations for an infant
3. Idempotent schedule upserts
4. Periodic service completion, projection and reminders
5. Per-subject failure isolation in a batch

Run with: uv run python demo_schedule.py
"""

from datetime import date

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from healthcycle.config import get_config
from healthcycle.domain.models import (
    CompletionRecord,
    CycleType,
    Gender,
    ServiceType,
    Subject,
)
from healthcycle.domain.reference_data import KCDC_RULESET
from healthcycle.observability import configure_logging
from healthcycle.services import (
    BatchItem,
    BatchScheduler,
    InMemoryScheduleStore,
    LifecycleScheduler,
    build_calendar,
    complete_service,
    create_periodic_service,
    save_candidates,
    service_reminder,
)

console = Console()
TODAY = date(2024, 3, 5)


def show_lifecycle() -> None:
    console.print(Panel("Lifecycle recommendations", style="blue"))

    scheduler = LifecycleScheduler(KCDC_RULESET)
    infant = Subject(subject_id="child-1", birth_date=date(2024, 2, 1), gender=Gender.FEMALE)
    history = [
        CompletionRecord(service_name="B형 간염", code="HepB", dose_number=1,
                         completed_date=date(2024, 2, 20)),
    ]
    result = scheduler.recommend(infant, history, today=TODAY)

    table = Table(title=f"child-1 ({KCDC_RULESET.version})")
    table.add_column("Service")
    table.add_column("Dose")
    table.add_column("Date")
    table.add_column("Priority")
    for schedule in result.schedules:
        table.add_row(
            schedule.service_name,
            f"{schedule.dose_number}/{schedule.total_doses}",
            schedule.recommended_date.isoformat(),
            schedule.priority.value,
        )
    console.print(table)

    store = InMemoryScheduleStore()
    save_candidates(store, "child-1", result.schedules)
    summary = save_candidates(store, "child-1", result.schedules)
    console.print(f"Rows after two runs: {len(store)} (second run saved {summary.saved})")


def show_periodic_services() -> None:
    console.print(Panel("Periodic services", style="blue"))

    checkup = create_periodic_service(
        "user-1", "건강검진", CycleType.YEARLY, service_type=ServiceType.CHECKUP,
        service_id="svc-1", last_service_date=date(2023, 3, 10), today=TODAY,
    )
    deworming = create_periodic_service(
        "user-1", "구충제 복용", CycleType.CUSTOM, cycle_days=90,
        service_type=ServiceType.DEWORMING, service_id="svc-2",
        last_service_date=date(2023, 6, 1), today=TODAY,
    )
    deworming = complete_service(deworming, date(2024, 3, 1), today=TODAY)

    for service in (checkup, deworming):
        status = service_reminder(service, today=TODAY)
        console.print(
            f"{service.service_name}: next {service.next_service_date} "
            f"upcoming={status.is_upcoming} overdue={status.is_overdue}"
        )

    calendar = build_calendar([checkup, deworming], today=TODAY)
    console.print(calendar.summary.model_dump())


def show_batch() -> None:
    console.print(Panel("Batch isolation", style="blue"))

    items = [
        BatchItem(Subject(subject_id="infant", birth_date=date(2023, 12, 1))),
        BatchItem(Subject(subject_id="typo", birth_date=date(2042, 1, 1))),
        BatchItem(Subject(subject_id="adult", birth_date=date(1990, 1, 1))),
    ]
    batch = BatchScheduler(LifecycleScheduler(KCDC_RULESET), get_config().batch)
    for result in batch.run_sync(items, today=TODAY):
        state = "ok" if result.is_ok() else f"failed: {result.unwrap_err()}"
        console.print(f"{result.label}: {state}")


if __name__ == "__main__":
    configure_logging(get_config().logging)
    show_lifecycle()
    show_periodic_services()
    show_batch()
