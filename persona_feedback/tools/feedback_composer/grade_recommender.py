"""Recommend a grade from the balance of strengths and severity-weighted issues."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from persona_feedback.libs.config_loader import ConfigType, get_config
from .findings import FindingStore
from .labels import grade_label
from .models import Finding, Grade, GradeRecommendation, LOWEST_PASSING_GRADE, Severity

LOG = logging.getLogger(__name__)

INSUFFICIENT_EVIDENCE = "insufficient evidence"


@dataclass(frozen=True)
class GradeThresholds:
    """Strength-to-issue ratios a submission must exceed to reach each grade."""
    pass_ratio: float = 0.25
    distinction_ratio: float = 1.5

    @classmethod
    def from_config(cls, configs: Optional[ConfigType]) -> "GradeThresholds":
        if not configs:
            return cls()
        section = get_config("feedback.grade_thresholds", configs, default={}) or {}
        return cls(
            pass_ratio=float(section.get("pass_ratio", cls.pass_ratio)),
            distinction_ratio=float(section.get("distinction_ratio", cls.distinction_ratio)),
        )


def _titles(findings: Iterable[Finding]) -> str:
    return ", ".join(f.title for f in findings)


def recommend_grade(
    findings: Union[FindingStore, Iterable[Finding]],
    thresholds: Optional[GradeThresholds] = None,
) -> GradeRecommendation:
    """
    Map findings to a grade and a rationale.

    Any high-severity issue pins the grade to the lowest passing grade, whatever
    the strengths. Otherwise the grade follows the ratio of strengths to
    issue points (high=3, medium=2, low=1); a ratio exactly on a threshold
    gets the lower grade.
    """
    store = FindingStore.coerce(findings)
    thresholds = thresholds or GradeThresholds()

    if not len(store):
        return GradeRecommendation(grade=Grade.FAIL, rationale=INSUFFICIENT_EVIDENCE)

    issues = store.issues()
    strengths = store.strengths()
    high = [f for f in issues if f.severity == Severity.HIGH]

    if high:
        plural = "issue" if len(high) == 1 else "issues"
        rationale = (
            f"Capped at {grade_label(LOWEST_PASSING_GRADE)} by high-severity {plural}: {_titles(high)}."
        )
        LOG.debug("Grade capped by %d high-severity issues", len(high))
        return GradeRecommendation(
            grade=LOWEST_PASSING_GRADE,
            rationale=rationale,
            driving_finding_ids=tuple(f.id for f in high),
        )

    weighted = sum(f.severity.weight for f in issues)
    if weighted == 0:
        return GradeRecommendation(
            grade=Grade.PASS_WITH_DISTINCTION,
            rationale=f"No issues found; {len(strengths)} strength(s): {_titles(strengths)}.",
            driving_finding_ids=tuple(f.id for f in strengths),
        )

    ratio = len(strengths) / weighted
    if ratio > thresholds.distinction_ratio:
        grade = Grade.PASS_WITH_DISTINCTION
    elif ratio > thresholds.pass_ratio:
        grade = Grade.PASS
    else:
        grade = Grade.FAIL

    rationale = (
        f"{len(strengths)} strength(s) against {weighted} weighted issue point(s) "
        f"(ratio {ratio:.2f}) gives {grade_label(grade)}; issues considered: {_titles(issues)}."
    )
    LOG.debug("Grade %s from ratio %.2f", grade.name, ratio)
    return GradeRecommendation(
        grade=grade,
        rationale=rationale,
        driving_finding_ids=tuple(f.id for f in issues + strengths),
    )
