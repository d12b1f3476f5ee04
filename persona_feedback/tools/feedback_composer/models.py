"""Pydantic models for findings, style profiles, grades and feedback drafts."""

import logging
from enum import Enum, IntEnum
from typing import Any, Dict, FrozenSet, Optional, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

LOG = logging.getLogger(__name__)


class FindingKind(str, Enum):
    ISSUE = "issue"
    STRENGTH = "strength"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def weight(self) -> int:
        """Weight used when balancing issues against strengths."""
        return {"low": 1, "medium": 2, "high": 3}[self.value]


class Tone(str, Enum):
    ENCOURAGING = "encouraging"
    DIRECT = "direct"
    ENCOURAGING_DIRECT = "encouraging+direct"
    NEUTRAL = "neutral"
    CRITICAL = "critical"


class LanguageLevel(str, Enum):
    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class SentenceLength(str, Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Grade(IntEnum):
    """Locale-agnostic ordered grade scale; labels live in labels.py."""
    FAIL = 0
    PASS = 1
    PASS_WITH_DISTINCTION = 2


LOWEST_PASSING_GRADE = Grade.PASS


class Finding(BaseModel):
    """One issue or strength reported by the analysis step."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable identifier of the finding")
    kind: FindingKind = Field(description="Whether this is an issue or a strength")
    title: str = Field(description="Short name of the observation")
    description: str = Field(default="", description="Longer explanation of the observation")
    severity: Optional[Severity] = Field(default=None, description="Issue severity; strengths have none")
    evidence_snippet: str = Field(
        default="",
        validation_alias=AliasChoices("evidence_snippet", "evidenceSnippet"),
        description="Verbatim code excerpt supporting the finding",
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("suggested_fix", "suggestedFix"),
        description="Optional remedy for an issue",
    )

    @model_validator(mode="after")
    def _check_severity(self) -> "Finding":
        if self.kind == FindingKind.ISSUE and self.severity is None:
            raise ValueError(f"Issue {self.id!r} has no severity")
        if self.kind == FindingKind.STRENGTH and self.severity is not None:
            raise ValueError(f"Strength {self.id!r} must not have a severity")
        return self

    @property
    def is_issue(self) -> bool:
        return self.kind == FindingKind.ISSUE

    @property
    def has_fix(self) -> bool:
        return bool(self.suggested_fix and self.suggested_fix.strip())


class Instructions(BaseModel):
    """Assignment text the feedback refers to."""
    model_config = ConfigDict(frozen=True)

    assignment_text: str = Field(
        default="",
        validation_alias=AliasChoices("assignment_text", "assignmentText"),
        description="The assignment as given to students",
    )
    additional_notes: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("additional_notes", "additionalNotes"),
        description="Extra guidance from the instructor",
    )
    student_name: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("student_name", "studentName"),
        description="Name used in the salutation",
    )

    def is_empty(self) -> bool:
        return not self.assignment_text.strip() and not (self.additional_notes or "").strip()


class StyleProfile(BaseModel):
    """A teacher's feedback-writing conventions."""
    model_config = ConfigDict(frozen=True)

    teacher_id: str = Field(validation_alias=AliasChoices("teacher_id", "teacherId"))
    display_name: str = Field(validation_alias=AliasChoices("display_name", "displayName"))
    tone: Tone = Field(default=Tone.NEUTRAL)
    language_level: LanguageLevel = Field(
        default=LanguageLevel.INTERMEDIATE,
        validation_alias=AliasChoices("language_level", "languageLevel"),
    )
    focus_areas: Tuple[str, ...] = Field(
        validation_alias=AliasChoices("focus_areas", "focusAreas"),
        description="Topic tags the teacher tends to comment on",
    )
    salutation: str = Field(default="Hi {student},", description="Template; {student} and {teacher} are filled in")
    signoff: str = Field(default="Best regards,\n{teacher}", description="Template; {student} and {teacher} are filled in")
    preferred_sentence_length: SentenceLength = Field(
        default=SentenceLength.MEDIUM,
        validation_alias=AliasChoices("preferred_sentence_length", "preferredSentenceLength"),
    )

    @field_validator("tone", mode="before")
    @classmethod
    def _default_tone(cls, value: Any) -> Any:
        if value is None or value == "":
            return Tone.NEUTRAL
        if not isinstance(value, Tone) and value not in {t.value for t in Tone}:
            LOG.warning("Unknown tone %r, falling back to neutral", value)
            return Tone.NEUTRAL
        return value

    @field_validator("language_level", mode="before")
    @classmethod
    def _default_level(cls, value: Any) -> Any:
        if value is None or value == "":
            return LanguageLevel.INTERMEDIATE
        if not isinstance(value, LanguageLevel) and value not in {level.value for level in LanguageLevel}:
            LOG.warning("Unknown language level %r, falling back to intermediate", value)
            return LanguageLevel.INTERMEDIATE
        return value

    @field_validator("focus_areas", mode="before")
    @classmethod
    def _check_focus_areas(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        elif isinstance(value, (set, frozenset)):
            value = sorted(value)
        areas = tuple(dict.fromkeys(str(v).strip() for v in (value or []) if str(v).strip()))
        if not areas:
            raise ValueError("focus_areas must contain at least one topic")
        return areas

    @field_validator("salutation", "signoff")
    @classmethod
    def _check_template(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Salutation and signoff templates must not be empty")
        return value.strip()


class GradeRecommendation(BaseModel):
    """Grade suggested from the findings, with the reasons behind it."""
    model_config = ConfigDict(frozen=True)

    grade: Grade
    rationale: str
    driving_finding_ids: Tuple[str, ...] = ()


class SectionKind(str, Enum):
    SALUTATION = "salutation"
    OVERVIEW = "overview"
    STRENGTHS = "strengths"
    ISSUES = "issues"
    IMPROVEMENTS = "improvements"
    GRADE = "grade"
    NEXT_STEPS = "next_steps"
    SIGNOFF = "signoff"


class DraftSection(BaseModel):
    """One paragraph of a draft and the findings it mentions."""
    model_config = ConfigDict(frozen=True)

    kind: SectionKind
    text: str
    finding_ids: Tuple[str, ...] = ()


class FeedbackDraft(BaseModel):
    """
    A feedback document at one revision.

    Drafts are immutable; the composer and the quick actions always return a
    new draft. ``revision`` counts edits since the last composition and
    ``generation`` counts regenerations, so ``version`` identifies a draft
    within a session.
    """
    model_config = ConfigDict(frozen=True)

    sections: Tuple[DraftSection, ...]
    instructions: Instructions = Field(default_factory=Instructions)
    source_finding_ids: FrozenSet[str] = frozenset()
    applied_actions: Tuple[str, ...] = ()
    fidelity_score: Optional[int] = None
    revision: int = 0
    generation: int = 0

    @computed_field
    @property
    def text(self) -> str:
        return "\n\n".join(section.text for section in self.sections if section.text)

    @property
    def version(self) -> Tuple[int, int]:
        return (self.generation, self.revision)

    def section(self, kind: SectionKind) -> Optional[DraftSection]:
        for section in self.sections:
            if section.kind == kind:
                return section
        return None

    def section_index(self, kind: SectionKind) -> Optional[int]:
        for i, section in enumerate(self.sections):
            if section.kind == kind:
                return i
        return None

    def to_yaml_dict(self) -> Dict[str, Any]:
        """Convert to dictionary suitable for YAML serialization."""
        result: Dict[str, Any] = {
            'text': self.text,
            'revision': self.revision,
            'generation': self.generation,
            'fidelity_score': self.fidelity_score,
            'source_finding_ids': sorted(self.source_finding_ids),
            'applied_actions': list(self.applied_actions),
            'sections': [
                {'kind': s.kind.value, 'text': s.text, 'finding_ids': list(s.finding_ids)}
                for s in self.sections
            ],
        }
        if not self.instructions.is_empty() or self.instructions.student_name:
            result['instructions'] = self.instructions.model_dump(exclude_none=True)
        return result
