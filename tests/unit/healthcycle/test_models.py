"""Tests for domain model validation and immutability."""

from datetime import date

import pytest
from pydantic import ValidationError

from healthcycle.domain.models import (
    CandidateSchedule,
    CycleType,
    Gender,
    GenderRequirement,
    MasterRule,
    PeriodicService,
    Priority,
    Subject,
    make_rule_key,
)


class TestMasterRule:
    def test_inverted_age_window_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not exceed"):
            MasterRule(
                service_name="x", age_window_min_months=6, age_window_max_months=1,
                dose_number=1, total_doses=1,
            )

    def test_dose_number_beyond_total_is_rejected(self) -> None:
        with pytest.raises(ValueError, match="within"):
            MasterRule(
                service_name="x", age_window_min_months=0, age_window_max_months=1,
                dose_number=3, total_doses=2,
            )

    def test_rule_key_combines_name_and_code(self) -> None:
        rule = MasterRule(service_name="수두", code="VAR", age_window_min_months=12,
                          dose_number=1, total_doses=2)
        assert rule.rule_key == "수두_VAR"
        assert make_rule_key("수두", None) == "수두_"

    def test_unknown_priority_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MasterRule(service_name="x", age_window_min_months=0, dose_number=1,
                       total_doses=1, priority="urgent")


class TestEnums:
    def test_priority_rank_order(self) -> None:
        assert Priority.REQUIRED.rank > Priority.RECOMMENDED.rank > Priority.OPTIONAL.rank

    def test_gender_requirement_admits(self) -> None:
        assert GenderRequirement.ALL.admits(None)
        assert GenderRequirement.FEMALE.admits(Gender.FEMALE)
        assert not GenderRequirement.FEMALE.admits(Gender.MALE)
        assert not GenderRequirement.MALE.admits(None)


class TestPeriodicService:
    def test_custom_cycle_requires_positive_days(self) -> None:
        with pytest.raises(ValueError, match="positive cycle_days"):
            PeriodicService(owner_id="u", service_name="x", cycle_type=CycleType.CUSTOM,
                            cycle_days=0, next_service_date=date(2024, 3, 5))

    def test_negative_reminder_lead_time_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            PeriodicService(owner_id="u", service_name="x", cycle_type=CycleType.DAILY,
                            next_service_date=date(2024, 3, 5), reminder_days_before=-1)

    def test_new_service_is_active(self) -> None:
        service = PeriodicService(owner_id="u", service_name="x", cycle_type=CycleType.DAILY,
                                  next_service_date=date(2024, 3, 5))
        assert service.active


class TestImmutability:
    def test_subject_is_frozen(self) -> None:
        subject = Subject(birth_date=date(2024, 1, 1))
        with pytest.raises(ValueError, match="frozen"):
            subject.birth_date = date(2020, 1, 1)  # type: ignore

    def test_missing_birth_date_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Subject()  # type: ignore[call-arg]

    def test_candidate_serialises_rule_key(self) -> None:
        candidate = CandidateSchedule(
            service_name="MMR", code="MMR", dose_number=2, total_doses=2,
            recommended_date=date(2025, 1, 1), priority=Priority.REQUIRED, source="kcdc",
        )
        assert candidate.model_dump()["rule_key"] == "MMR_MMR"
