"""
Completion history indexed by rule key and dose number.

Only records with a completed date are indexed. When several records exist
for the same (rule key, dose), the latest completed date wins so chaining
is reproducible regardless of record order.
"""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from healthcycle.domain.models import CompletionRecord


class CompletionIndex:
    """O(1) lookup of completed doses."""

    def __init__(self, completed: dict[str, dict[int, date]]) -> None:
        self._completed = completed

    def has(self, rule_key: str, dose_number: int) -> bool:
        return dose_number in self._completed.get(rule_key, {})

    def completed_date(self, rule_key: str, dose_number: int) -> date | None:
        """Latest completed date for a dose, or None when not completed."""
        return self._completed.get(rule_key, {}).get(dose_number)

    def doses(self, rule_key: str) -> frozenset[int]:
        return frozenset(self._completed.get(rule_key, {}))

    def as_sets(self) -> dict[str, set[int]]:
        """Plain rule_key -> {dose_number} view."""
        return {key: set(doses) for key, doses in self._completed.items()}

    def __len__(self) -> int:
        return sum(len(doses) for doses in self._completed.values())


def build_index(records: Iterable[CompletionRecord]) -> CompletionIndex:
    completed: dict[str, dict[int, date]] = defaultdict(dict)
    for record in records:
        if record.completed_date is None:
            continue
        doses = completed[record.rule_key]
        previous = doses.get(record.dose_number)
        if previous is None or record.completed_date > previous:
            doses[record.dose_number] = record.completed_date
    return CompletionIndex(dict(completed))
