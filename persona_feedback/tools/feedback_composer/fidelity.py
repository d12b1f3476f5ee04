"""Score how closely a draft's surface style matches a teacher's style profile."""

import logging
import math
import re
from typing import Dict, Tuple

from pydantic import BaseModel, Field

from persona_feedback.libs.text_metrics import (
    average_sentence_length,
    band_score,
    bucket_score,
    complexity_index,
    length_bucket,
    softening_ratio,
    split_sentences,
    template_pattern,
)
from .models import FeedbackDraft, LanguageLevel, StyleProfile, Tone

LOG = logging.getLogger(__name__)

# Expected softening ratio (hedged / (hedged + direct)) per tone
TONE_BANDS: Dict[Tone, Tuple[float, float]] = {
    Tone.ENCOURAGING: (0.6, 1.0),
    Tone.ENCOURAGING_DIRECT: (0.35, 0.65),
    Tone.NEUTRAL: (0.25, 0.75),
    Tone.DIRECT: (0.0, 0.35),
    Tone.CRITICAL: (0.0, 0.2),
}

# Expected complexity index per language level
LEVEL_BANDS: Dict[LanguageLevel, Tuple[float, float]] = {
    LanguageLevel.BASIC: (0.0, 0.3),
    LanguageLevel.INTERMEDIATE: (0.3, 0.65),
    LanguageLevel.ADVANCED: (0.6, 1.0),
}

WEIGHTS = {
    "tone": 0.35,
    "language_level": 0.25,
    "sentence_length": 0.20,
    "salutation_signoff": 0.20,
}


class FidelityBreakdown(BaseModel):
    """Sub-scores and the measurements they were computed from."""
    tone: float = Field(description="Tone sub-score, 0-100")
    language_level: float = Field(description="Language level sub-score, 0-100")
    sentence_length: float = Field(description="Sentence length sub-score, 0-100")
    salutation_signoff: float = Field(description="Salutation/signoff presence sub-score, 0-100")
    total: int = Field(description="Weighted total, rounded and clamped to 0-100")

    softening_ratio: float = Field(description="Hedged share of tone-marked sentences")
    complexity_index: float = Field(description="Clause and word-length complexity proxy")
    average_sentence_length: float = Field(description="Average words per sentence")
    length_bucket: str = Field(description="Bucket of the average sentence length")


def split_frame(text: str, profile: StyleProfile) -> Tuple[str, bool, bool]:
    """
    Separate the salutation and signoff from the body of a draft.

    Returns the body plus whether the salutation was found at the start and
    the signoff at the end. Template placeholders match any single line.
    """
    body = text.strip()
    salutation = re.match(template_pattern(profile.salutation), body)
    if salutation:
        body = body[salutation.end():]
    signoff = re.search(template_pattern(profile.signoff) + r"\s*\Z", body)
    if signoff:
        body = body[:signoff.start()]
    return body.strip(), bool(salutation), bool(signoff)


def score_text(text: str, profile: StyleProfile) -> FidelityBreakdown:
    body, has_salutation, has_signoff = split_frame(text, profile)
    sentences = split_sentences(body)

    ratio = softening_ratio(sentences)
    complexity = complexity_index(sentences)
    avg_length = average_sentence_length(sentences)
    bucket = length_bucket(avg_length)

    tone_low, tone_high = TONE_BANDS[profile.tone]
    level_low, level_high = LEVEL_BANDS[profile.language_level]
    scores = {
        "tone": band_score(ratio, tone_low, tone_high),
        "language_level": band_score(complexity, level_low, level_high),
        "sentence_length": bucket_score(bucket, profile.preferred_sentence_length.value),
        "salutation_signoff": 50.0 * has_salutation + 50.0 * has_signoff,
    }
    weighted = sum(WEIGHTS[name] * value for name, value in scores.items())
    total = max(0, min(100, math.floor(weighted + 0.5)))

    LOG.debug(
        "Fidelity for %s: ratio=%.2f complexity=%.2f avg_len=%.1f -> %d",
        profile.teacher_id, ratio, complexity, avg_length, total,
    )
    return FidelityBreakdown(
        total=total,
        softening_ratio=ratio,
        complexity_index=complexity,
        average_sentence_length=avg_length,
        length_bucket=bucket,
        **scores,
    )


def score_breakdown(draft: FeedbackDraft, profile: StyleProfile) -> FidelityBreakdown:
    """Score a draft and return every sub-score."""
    return score_text(draft.text, profile)


def score_fidelity(draft: FeedbackDraft, profile: StyleProfile) -> int:
    """
    Personality match of a draft against a style profile.

    Args:
        draft: The draft to score
        profile: The teacher's style profile

    Returns:
        Integer 0-100; identical inputs always give the identical score
    """
    return score_text(draft.text, profile).total


def with_score(draft: FeedbackDraft, profile: StyleProfile) -> FeedbackDraft:
    """Copy of the draft with its fidelity score filled in."""
    return draft.model_copy(update={"fidelity_score": score_fidelity(draft, profile)})
