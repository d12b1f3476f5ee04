"""Shared fixtures: findings and a profile modelled on a React assignment review."""

import pytest

from persona_feedback.tools.feedback_composer.findings import FindingStore
from persona_feedback.tools.feedback_composer.models import Finding, Instructions, StyleProfile


@pytest.fixture
def findings():
    """Two strengths and three issues, in analyzer order."""
    return FindingStore([
        Finding(
            id="s1",
            kind="strength",
            title="Good application of React hooks",
            description="Effective use of useState and useEffect for state management.",
        ),
        Finding(
            id="i1",
            kind="issue",
            severity="medium",
            title="Component structure needs improvement",
            description="The main component mixes data fetching, filtering and rendering.",
            suggested_fix="Split filtering, sorting and fetching into separate components.",
        ),
        Finding(
            id="s2",
            kind="strength",
            title="Clean pagination implementation",
            description="Page controls are clear and easy to follow.",
        ),
        Finding(
            id="i2",
            kind="issue",
            severity="high",
            title="Missing error handling",
            description="Fetch calls have no error handling for failed requests.",
            evidence_snippet="const res = await fetch(url);",
            suggested_fix="Check response.ok and catch network errors in every fetch call.",
        ),
        Finding(
            id="i3",
            kind="issue",
            severity="medium",
            title="Responsive design implementation is incomplete",
            description="The layout breaks on narrow screens.",
        ),
    ])


@pytest.fixture
def instructions():
    return Instructions(
        assignment_text="Build a web application that displays a list of products with filtering and sorting.",
        student_name="Alex",
    )


@pytest.fixture
def profile():
    return StyleProfile(
        teacher_id="anna",
        display_name="Anna Lindqvist",
        tone="encouraging+direct",
        language_level="intermediate",
        focus_areas=["code quality", "testing", "documentation"],
        salutation="Hi {student},",
        signoff="Best regards,\n{teacher}",
        preferred_sentence_length="medium",
    )


@pytest.fixture
def make_profile():
    """Factory for profiles that differ from a minimal one in a few fields."""
    def factory(**overrides) -> StyleProfile:
        data = {
            "teacher_id": "anna",
            "display_name": "Anna Lindqvist",
            "focus_areas": ["code quality"],
        }
        data.update(overrides)
        return StyleProfile(**data)
    return factory
