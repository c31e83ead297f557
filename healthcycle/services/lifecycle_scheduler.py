"""
Lifecycle (multi-dose) recommendation pipeline.

Pipeline: match rules to the subject -> sequence a date for each dose ->
merge into priority/date order. Each stage is a plain function so batch
callers and tests can drive them individually; LifecycleScheduler wires
them together around an injected RuleSet.
"""

from collections.abc import Iterable, Sequence
from datetime import date

import structlog
from dateutil.relativedelta import relativedelta
from pydantic import BaseModel, Field

from healthcycle.config import today as current_date
from healthcycle.domain.errors import ScheduleValidationError
from healthcycle.domain.models import CandidateSchedule, CompletionRecord, MasterRule, Subject
from healthcycle.domain.reference_data import RuleSet
from healthcycle.services.completion_index import CompletionIndex, build_index

logger = structlog.get_logger(__name__)


def months_between(start: date, end: date) -> int:
    """Whole calendar months elapsed from start to end (floored)."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def _check_subject(subject: Subject, today: date) -> None:
    if subject.birth_date is None:
        raise ScheduleValidationError("subject birth_date is required")
    if subject.birth_date > today:
        raise ScheduleValidationError(
            f"birth_date {subject.birth_date.isoformat()} is after {today.isoformat()}"
        )


def _check_rule(rule: MasterRule) -> None:
    # Rules built with model_construct() skip pydantic validation
    if (
        rule.age_window_max_months is not None
        and rule.age_window_min_months > rule.age_window_max_months
    ):
        raise ScheduleValidationError(
            f"rule {rule.rule_key} dose {rule.dose_number} has an inverted age window "
            f"[{rule.age_window_min_months}, {rule.age_window_max_months}]"
        )


def match_rules(
    subject: Subject,
    today: date,
    rules: Iterable[MasterRule],
    completed: CompletionIndex,
) -> list[MasterRule]:
    """
    Rules applicable to the subject right now.

    Drops inactive rules, gender mismatches, rules whose closed age window
    does not contain the subject's current age, and doses already completed.
    """
    _check_subject(subject, today)
    age_months = months_between(subject.birth_date, today)
    log = logger.bind(component="rule_matcher", age_months=age_months)

    applicable: list[MasterRule] = []
    for rule in rules:
        _check_rule(rule)
        if not rule.active:
            continue
        if not rule.gender_requirement.admits(subject.gender):
            continue
        if age_months < rule.age_window_min_months:
            continue
        if rule.age_window_max_months is not None and age_months > rule.age_window_max_months:
            continue
        if completed.has(rule.rule_key, rule.dose_number):
            log.debug("rule_skipped_completed", rule_key=rule.rule_key, dose=rule.dose_number)
            continue
        applicable.append(rule)
    return applicable


def recommended_date_for(rule: MasterRule, subject: Subject, completed: CompletionIndex) -> date:
    """
    Recommended date for one dose.

    Dose 1 is offset from birth by the window minimum. Later doses chain from
    the prior dose's completion date plus the rule interval, and fall back to
    the birth offset when either is missing.
    """
    birth_offset = subject.birth_date + relativedelta(months=rule.age_window_min_months)
    if rule.dose_number == 1:
        return birth_offset

    prior = completed.completed_date(rule.rule_key, rule.dose_number - 1)
    if prior is not None and rule.interval_days_from_prior_dose:
        return prior + relativedelta(days=rule.interval_days_from_prior_dose)
    return birth_offset


def sequence_dose(
    rule: MasterRule,
    subject: Subject,
    completed: CompletionIndex | Iterable[CompletionRecord],
    today: date,
) -> CandidateSchedule | None:
    """Candidate for one rule, or None when its date is not after today."""
    if not isinstance(completed, CompletionIndex):
        completed = build_index(completed)

    recommended = recommended_date_for(rule, subject, completed)
    if recommended <= today:
        logger.debug(
            "candidate_dropped_past_date",
            component="dose_sequencer",
            rule_key=rule.rule_key,
            dose=rule.dose_number,
            recommended_date=recommended.isoformat(),
        )
        return None

    return CandidateSchedule(
        service_name=rule.service_name,
        code=rule.code,
        dose_number=rule.dose_number,
        total_doses=rule.total_doses,
        recommended_date=recommended,
        priority=rule.priority,
        interval_days_from_prior_dose=rule.interval_days_from_prior_dose,
        source=rule.source,
    )


def merge_candidates(candidates: Iterable[CandidateSchedule]) -> list[CandidateSchedule]:
    """Order by priority rank (highest first), then recommended date; stable."""
    return sorted(candidates, key=lambda c: (-c.priority.rank, c.recommended_date))


class LifecycleScheduleResult(BaseModel):
    """Ordered candidates produced by one scheduling run."""

    subject_id: str | None = None
    ruleset_version: str
    schedules: list[CandidateSchedule] = Field(default_factory=list)

    @property
    def total_schedules(self) -> int:
        return len(self.schedules)


class LifecycleScheduler:
    """
    Computes lifecycle recommendations for one subject at a time.

    The RuleSet is injected once; the scheduler holds no per-subject state,
    so a single instance can serve concurrent callers.
    """

    def __init__(self, ruleset: RuleSet) -> None:
        self.ruleset = ruleset
        self._rules: Sequence[MasterRule] = ruleset.rules
        self.logger = logger.bind(component="lifecycle_scheduler", ruleset=ruleset.version)

    def recommend(
        self,
        subject: Subject,
        records: Iterable[CompletionRecord] = (),
        *,
        today: date | None = None,
    ) -> LifecycleScheduleResult:
        reference = today if today is not None else current_date()
        completed = build_index(records)

        applicable = match_rules(subject, reference, self._rules, completed)
        candidates = [
            candidate
            for rule in applicable
            if (candidate := sequence_dose(rule, subject, completed, reference)) is not None
        ]
        schedules = merge_candidates(candidates)

        self.logger.info(
            "lifecycle_schedule_computed",
            subject_id=subject.subject_id,
            applicable_rules=len(applicable),
            schedules=len(schedules),
        )
        return LifecycleScheduleResult(
            subject_id=subject.subject_id,
            ruleset_version=self.ruleset.version,
            schedules=schedules,
        )
