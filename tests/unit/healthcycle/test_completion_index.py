from datetime import date

from healthcycle.domain.models import CompletionRecord
from healthcycle.services.completion_index import build_index


def record(dose: int, on: date | None, name: str = "폴리오", code: str | None = "IPV"):
    return CompletionRecord(service_name=name, code=code, dose_number=dose, completed_date=on)


class TestCompletionIndex:
    def test_only_completed_doses_are_indexed(self) -> None:
        index = build_index([record(1, date(2024, 1, 1)), record(2, None)])

        assert index.has("폴리오_IPV", 1)
        assert not index.has("폴리오_IPV", 2)
        assert index.doses("폴리오_IPV") == frozenset({1})
        assert len(index) == 1

    def test_latest_completed_date_wins_regardless_of_order(self) -> None:
        early, late = date(2024, 1, 1), date(2024, 2, 1)
        forward = build_index([record(1, early), record(1, late)])
        backward = build_index([record(1, late), record(1, early)])

        assert forward.completed_date("폴리오_IPV", 1) == late
        assert backward.completed_date("폴리오_IPV", 1) == late
        assert len(forward) == 1

    def test_unknown_keys_are_absent(self) -> None:
        index = build_index([])
        assert not index.has("missing_", 1)
        assert index.completed_date("missing_", 1) is None
        assert index.doses("missing_") == frozenset()

    def test_as_sets_view(self) -> None:
        index = build_index(
            [
                record(1, date(2024, 1, 1)),
                record(2, date(2024, 3, 1)),
                record(1, date(2024, 1, 1), "BCG", None),
            ]
        )
        assert index.as_sets() == {"폴리오_IPV": {1, 2}, "BCG_": {1}}
