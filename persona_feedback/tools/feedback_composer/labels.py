"""Locale labels for grades and style profile descriptions."""

from typing import Dict, List

from .models import Grade, LanguageLevel, StyleProfile, Tone

DEFAULT_LOCALE = "en"

GRADE_LABELS: Dict[str, Dict[Grade, str]] = {
    "en": {
        Grade.FAIL: "Fail",
        Grade.PASS: "Pass",
        Grade.PASS_WITH_DISTINCTION: "Pass with distinction",
    },
    "sv": {
        Grade.FAIL: "Underkänt (U)",
        Grade.PASS: "Godkänt (G)",
        Grade.PASS_WITH_DISTINCTION: "Väl godkänt (VG)",
    },
}

TONE_LABELS = {
    Tone.ENCOURAGING: "Encouraging",
    Tone.DIRECT: "Direct",
    Tone.ENCOURAGING_DIRECT: "Encouraging & Direct",
    Tone.NEUTRAL: "Neutral",
    Tone.CRITICAL: "Critical",
}

LEVEL_LABELS = {
    LanguageLevel.BASIC: "Basic",
    LanguageLevel.INTERMEDIATE: "Intermediate",
    LanguageLevel.ADVANCED: "Advanced",
}


def available_locales() -> List[str]:
    return sorted(GRADE_LABELS)


def grade_label(grade: Grade, locale: str = DEFAULT_LOCALE) -> str:
    """Label for a grade; unknown locales fall back to English."""
    labels = GRADE_LABELS.get(locale, GRADE_LABELS[DEFAULT_LOCALE])
    return labels[Grade(grade)]


def describe_profile(profile: StyleProfile) -> Dict[str, str]:
    """Human-readable summary of a style profile, as shown next to a draft."""
    focus = ", ".join(area[:1].upper() + area[1:] for area in profile.focus_areas)
    return {
        "teacher": profile.display_name,
        "feedback_style": TONE_LABELS[profile.tone],
        "language_level": LEVEL_LABELS[profile.language_level],
        "focus_areas": focus,
        "sentence_length": profile.preferred_sentence_length.value.capitalize(),
    }
