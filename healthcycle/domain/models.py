"""
Domain models for recurring health-event scheduling.

These models represent the core business concepts and are framework-agnostic.
They use Pydantic for validation; every record is immutable so a single
computation can never observe a half-updated input.
"""

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class CycleType(str, Enum):
    """Recurrence granularity for a periodic service."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"
    CUSTOM = "custom"


class Priority(str, Enum):
    """Scheduling priority of a lifecycle rule."""

    REQUIRED = "required"
    RECOMMENDED = "recommended"
    OPTIONAL = "optional"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.REQUIRED: 3,
    Priority.RECOMMENDED: 2,
    Priority.OPTIONAL: 1,
}


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


class GenderRequirement(str, Enum):
    """Which subjects a rule applies to."""

    ALL = "all"
    MALE = "male"
    FEMALE = "female"

    def admits(self, gender: Gender | None) -> bool:
        if self is GenderRequirement.ALL:
            return True
        return gender is not None and gender.value == self.value


class ServiceType(str, Enum):
    """Free-form service tags seen in practice."""

    VACCINATION = "vaccination"
    CHECKUP = "checkup"
    DEWORMING = "deworming"
    OTHER = "other"


class ServiceState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


def make_rule_key(service_name: str, code: str | None) -> str:
    """Key that disambiguates same-name rules by their code."""
    return f"{service_name}_{code or ''}"


class Subject(BaseModel):
    """Person a lifecycle schedule is computed for."""

    model_config = ConfigDict(frozen=True)

    subject_id: str | None = None
    birth_date: date
    gender: Gender | None = None


class MasterRule(BaseModel):
    """Age- and gender-gated reference rule for one dose of a program."""

    model_config = ConfigDict(frozen=True)

    service_name: str = Field(min_length=1)
    code: str | None = None
    age_window_min_months: int = Field(ge=0)
    # None means the window has no upper bound (adult programs)
    age_window_max_months: int | None = Field(default=None, ge=0)
    gender_requirement: GenderRequirement = GenderRequirement.ALL
    dose_number: int = Field(ge=1)
    total_doses: int = Field(ge=1)
    interval_days_from_prior_dose: int | None = Field(default=None, gt=0)
    priority: Priority = Priority.RECOMMENDED
    active: bool = True
    source: str = "kcdc"
    description: str | None = None

    @model_validator(mode="after")
    def check_windows(self) -> "MasterRule":
        if (
            self.age_window_max_months is not None
            and self.age_window_min_months > self.age_window_max_months
        ):
            raise ValueError("age_window_min_months must not exceed age_window_max_months")
        if self.dose_number > self.total_doses:
            raise ValueError("dose_number must be within [1, total_doses]")
        return self

    @property
    def rule_key(self) -> str:
        return make_rule_key(self.service_name, self.code)


class CompletionRecord(BaseModel):
    """One recorded (or still pending) dose from a subject's history."""

    model_config = ConfigDict(frozen=True)

    subject_id: str | None = None
    service_name: str
    code: str | None = None
    dose_number: int = Field(ge=1)
    completed_date: date | None = None

    @property
    def rule_key(self) -> str:
        return make_rule_key(self.service_name, self.code)


class CandidateSchedule(BaseModel):
    """Recommended date for one dose, produced by a single scheduling run."""

    model_config = ConfigDict(frozen=True)

    service_name: str
    code: str | None = None
    dose_number: int
    total_doses: int
    recommended_date: date
    priority: Priority
    interval_days_from_prior_dose: int | None = None
    source: str

    @computed_field  # type: ignore[prop-decorator]
    @property
    def rule_key(self) -> str:
        return make_rule_key(self.service_name, self.code)


class PeriodicService(BaseModel):
    """A user-defined recurring health service (checkup, deworming, ...)."""

    model_config = ConfigDict(frozen=True)

    service_id: str | None = None
    owner_id: str
    family_member_id: str | None = None
    service_type: ServiceType | str = ServiceType.OTHER
    service_name: str
    cycle_type: CycleType
    cycle_days: int | None = None
    last_service_date: date | None = None
    next_service_date: date
    reminder_days_before: int = Field(default=7, ge=0)
    reminder_enabled: bool = True
    state: ServiceState = ServiceState.ACTIVE
    notes: str | None = None

    @model_validator(mode="after")
    def check_cycle(self) -> "PeriodicService":
        if self.cycle_type is CycleType.CUSTOM and (
            self.cycle_days is None or self.cycle_days <= 0
        ):
            raise ValueError("custom cycle requires a positive cycle_days")
        return self

    @property
    def active(self) -> bool:
        return self.state is ServiceState.ACTIVE


class ProjectedOccurrence(BaseModel):
    """One future occurrence of a periodic service."""

    model_config = ConfigDict(frozen=True)

    date: date
    days_until: int


class ReminderStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    is_upcoming: bool
    is_overdue: bool
