"""
Versioned master-rule datasets.

A RuleSet is loaded once and handed to the lifecycle scheduler explicitly;
nothing in the engine reads rules from module-level mutable state.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from healthcycle.domain.models import GenderRequirement, MasterRule, Priority


class RuleSet(BaseModel):
    """Immutable collection of master rules tagged with a dataset version."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(min_length=1)
    rules: tuple[MasterRule, ...]

    def active_rules(self) -> tuple[MasterRule, ...]:
        return tuple(rule for rule in self.rules if rule.active)

    @classmethod
    def from_json(cls, path: str | Path) -> "RuleSet":
        """Load a dataset exported as JSON ({"version": ..., "rules": [...]})."""
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


def _rule(
    name: str,
    code: str,
    age_min: int,
    age_max: int | None,
    priority: Priority,
    dose: int,
    total: int,
    interval: int | None,
    description: str,
) -> MasterRule:
    return MasterRule(
        service_name=name,
        code=code,
        age_window_min_months=age_min,
        age_window_max_months=age_max,
        priority=priority,
        dose_number=dose,
        total_doses=total,
        interval_days_from_prior_dose=interval,
        gender_requirement=GenderRequirement.ALL,
        description=description,
        source="kcdc",
    )


_REQ = Priority.REQUIRED
_REC = Priority.RECOMMENDED

# KCDC standard lifecycle vaccination table
KCDC_RULESET = RuleSet(
    version="kcdc-2024.1",
    rules=(
        _rule("B형 간염", "HepB", 0, 1, _REQ, 1, 3, 30, "출생 직후 접종 시작"),
        _rule("B형 간염", "HepB", 1, 2, _REQ, 2, 3, 30, "생후 1개월"),
        _rule("B형 간염", "HepB", 2, 6, _REQ, 3, 3, 120, "생후 6개월"),
        _rule("결핵(BCG)", "BCG", 0, 1, _REQ, 1, 1, None, "출생 직후 접종"),
        _rule("디프테리아·파상풍·백일해", "DTaP", 2, 3, _REQ, 1, 4, 30, "생후 2개월"),
        _rule("디프테리아·파상풍·백일해", "DTaP", 4, 5, _REQ, 2, 4, 30, "생후 4개월"),
        _rule("디프테리아·파상풍·백일해", "DTaP", 6, 7, _REQ, 3, 4, 180, "생후 6개월"),
        _rule("디프테리아·파상풍·백일해", "DTaP", 15, 18, _REQ, 4, 4, None, "생후 15-18개월"),
        _rule("폴리오", "IPV", 2, 3, _REQ, 1, 4, 30, "생후 2개월"),
        _rule("폴리오", "IPV", 4, 5, _REQ, 2, 4, 30, "생후 4개월"),
        _rule("폴리오", "IPV", 6, 7, _REQ, 3, 4, 180, "생후 6개월"),
        _rule("폴리오", "IPV", 15, 18, _REQ, 4, 4, None, "생후 15-18개월"),
        _rule("디프테리아·파상풍·백일해·폴리오", "DTaP-IPV", 2, 3, _REC, 1, 3, 60, "생후 2개월 (복합백신)"),
        _rule("디프테리아·파상풍·백일해·폴리오", "DTaP-IPV", 4, 5, _REC, 2, 3, 60, "생후 4개월 (복합백신)"),
        _rule("디프테리아·파상풍·백일해·폴리오", "DTaP-IPV", 6, 7, _REC, 3, 3, None, "생후 6개월 (복합백신)"),
        _rule("홍역·유행성이하선염·풍진", "MMR", 12, 15, _REQ, 1, 2, 365, "생후 12-15개월"),
        _rule("홍역·유행성이하선염·풍진", "MMR", 24, 27, _REQ, 2, 2, None, "생후 4-6세"),
        _rule("수두", "VAR", 12, 15, _REQ, 1, 2, 90, "생후 12-15개월"),
        _rule("수두", "VAR", 15, 18, _REQ, 2, 2, None, "생후 4-6세"),
        _rule("파상풍·디프테리아", "Td", 216, None, _REC, 1, 1, None, "만 11-12세 또는 성인"),
        _rule("인플루엔자", "Flu", 72, None, _REC, 1, 1, 365, "매년 10월-11월"),
    ),
)
