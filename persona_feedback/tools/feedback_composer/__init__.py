"""Compose teacher-style feedback from findings, score its fidelity and edit it with quick actions."""

from .composer import FeedbackComposer, compose_feedback
from .errors import (
    EmptyInputError,
    FeedbackError,
    NoOpError,
    StaleRevisionError,
    SupersededError,
    UnknownActionError,
)
from .fidelity import FidelityBreakdown, score_breakdown, score_fidelity
from .findings import FindingStore
from .grade_recommender import GradeThresholds, recommend_grade
from .models import (
    DraftSection,
    FeedbackDraft,
    Finding,
    FindingKind,
    Grade,
    GradeRecommendation,
    Instructions,
    LanguageLevel,
    SectionKind,
    SentenceLength,
    Severity,
    StyleProfile,
    Tone,
)
from .quick_actions import QUICK_ACTIONS, apply_quick_action
from .session import FeedbackSession

__all__ = [
    "DraftSection",
    "EmptyInputError",
    "FeedbackComposer",
    "FeedbackDraft",
    "FeedbackError",
    "FeedbackSession",
    "FidelityBreakdown",
    "Finding",
    "FindingKind",
    "FindingStore",
    "Grade",
    "GradeRecommendation",
    "GradeThresholds",
    "Instructions",
    "LanguageLevel",
    "NoOpError",
    "QUICK_ACTIONS",
    "SectionKind",
    "SentenceLength",
    "Severity",
    "StaleRevisionError",
    "StyleProfile",
    "SupersededError",
    "Tone",
    "UnknownActionError",
    "apply_quick_action",
    "compose_feedback",
    "recommend_grade",
    "score_breakdown",
    "score_fidelity",
]
