"""Tests for the data models, labels and the finding store."""

import pytest
from pydantic import ValidationError

from persona_feedback.tools.feedback_composer.findings import FindingStore
from persona_feedback.tools.feedback_composer.labels import (
    available_locales,
    describe_profile,
    grade_label,
)
from persona_feedback.tools.feedback_composer.models import (
    DraftSection,
    FeedbackDraft,
    Finding,
    Grade,
    Instructions,
    LanguageLevel,
    SectionKind,
    Severity,
    StyleProfile,
    Tone,
)


class TestFinding:
    """Test Finding validation."""

    def test_issue_requires_severity(self):
        with pytest.raises(ValidationError):
            Finding(id="i1", kind="issue", title="No tests")

    def test_strength_rejects_severity(self):
        with pytest.raises(ValidationError):
            Finding(id="s1", kind="strength", title="Clean code", severity="low")

    def test_camel_case_fields(self):
        finding = Finding.model_validate({
            "id": "i1",
            "kind": "issue",
            "severity": "high",
            "title": "Missing error handling",
            "evidenceSnippet": "fetch(url)",
            "suggestedFix": "Catch errors.",
        })
        assert finding.evidence_snippet == "fetch(url)"
        assert finding.has_fix
        assert finding.is_issue

    def test_blank_fix_is_no_fix(self):
        finding = Finding(id="i1", kind="issue", severity="low", title="Typo", suggested_fix="  ")
        assert not finding.has_fix

    def test_findings_are_immutable(self):
        finding = Finding(id="s1", kind="strength", title="Clean code")
        with pytest.raises(ValidationError):
            finding.title = "Messy code"

    def test_severity_weights(self):
        assert [s.weight for s in (Severity.LOW, Severity.MEDIUM, Severity.HIGH)] == [1, 2, 3]


class TestStyleProfile:
    """Test StyleProfile defaults and validation."""

    def test_defaults(self, make_profile):
        profile = make_profile()
        assert profile.tone == Tone.NEUTRAL
        assert profile.language_level == LanguageLevel.INTERMEDIATE
        assert profile.salutation == "Hi {student},"
        assert profile.signoff == "Best regards,\n{teacher}"

    def test_unknown_tone_and_level_fall_back(self, make_profile):
        profile = make_profile(tone="sarcastic", language_level="expert")
        assert profile.tone == Tone.NEUTRAL
        assert profile.language_level == LanguageLevel.INTERMEDIATE

    def test_empty_focus_areas_rejected(self, make_profile):
        with pytest.raises(ValidationError):
            make_profile(focus_areas=[])
        with pytest.raises(ValidationError):
            make_profile(focus_areas=["  "])

    def test_focus_areas_deduplicated(self, make_profile):
        profile = make_profile(focus_areas=["testing", "code quality", "testing"])
        assert profile.focus_areas == ("testing", "code quality")

    def test_camel_case_fields(self):
        profile = StyleProfile.model_validate({
            "teacherId": "anna",
            "displayName": "Anna",
            "tone": "direct",
            "languageLevel": "advanced",
            "focusAreas": "testing",
            "preferredSentenceLength": "long",
        })
        assert profile.teacher_id == "anna"
        assert profile.focus_areas == ("testing",)
        assert profile.language_level == LanguageLevel.ADVANCED

    def test_empty_template_rejected(self, make_profile):
        with pytest.raises(ValidationError):
            make_profile(signoff="   ")


class TestDraft:
    """Test FeedbackDraft structure."""

    def test_text_joins_non_empty_sections(self):
        draft = FeedbackDraft(sections=(
            DraftSection(kind=SectionKind.SALUTATION, text="Hi Alex,"),
            DraftSection(kind=SectionKind.OVERVIEW, text=""),
            DraftSection(kind=SectionKind.SIGNOFF, text="Best regards,\nAnna"),
        ))
        assert draft.text == "Hi Alex,\n\nBest regards,\nAnna"
        assert draft.section_index(SectionKind.SIGNOFF) == 2
        assert draft.section(SectionKind.ISSUES) is None
        assert draft.version == (0, 0)

    def test_yaml_dict(self):
        draft = FeedbackDraft(
            sections=(DraftSection(kind=SectionKind.OVERVIEW, text="Done.", finding_ids=("b", "a")),),
            source_finding_ids=frozenset({"b", "a"}),
            instructions=Instructions(assignment_text="Build a game."),
        )
        data = draft.to_yaml_dict()
        assert data["text"] == "Done."
        assert data["source_finding_ids"] == ["a", "b"]
        assert data["sections"][0]["kind"] == "overview"
        assert data["instructions"]["assignment_text"] == "Build a game."

    def test_instructions_is_empty(self):
        assert Instructions().is_empty()
        assert Instructions(student_name="Alex").is_empty()
        assert not Instructions(additional_notes="Focus on tests").is_empty()


class TestFindingStore:
    """Test the finding store."""

    def test_keeps_insertion_order(self, findings):
        assert findings.ids == ("s1", "i1", "s2", "i2", "i3")
        assert [f.id for f in findings.strengths()] == ["s1", "s2"]

    def test_issues_by_severity_is_stable(self, findings):
        assert [f.id for f in findings.issues_by_severity()] == ["i2", "i1", "i3"]

    def test_lookup(self, findings):
        assert "i2" in findings
        assert findings.get("i2").title == "Missing error handling"
        assert findings.get("nope") is None
        assert len(findings) == 5

    def test_count_by_severity(self, findings):
        counts = findings.count_by_severity()
        assert counts[Severity.HIGH] == 1
        assert counts[Severity.MEDIUM] == 2
        assert counts[Severity.LOW] == 0

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            FindingStore([
                Finding(id="x", kind="strength", title="A"),
                Finding(id="x", kind="strength", title="B"),
            ])

    def test_accepts_dicts(self):
        store = FindingStore([{"id": "s1", "kind": "strength", "title": "Clean"}])
        assert store.strengths()[0].title == "Clean"

    def test_coerce_returns_same_store(self, findings):
        assert FindingStore.coerce(findings) is findings
        assert len(FindingStore.coerce(None)) == 0


class TestLabels:
    """Test locale labels."""

    def test_grade_labels(self):
        assert grade_label(Grade.PASS) == "Pass"
        assert grade_label(Grade.PASS, "sv") == "Godkänt (G)"
        assert grade_label(Grade.PASS_WITH_DISTINCTION, "sv") == "Väl godkänt (VG)"

    def test_unknown_locale_falls_back_to_english(self):
        assert grade_label(Grade.FAIL, "xx") == "Fail"

    def test_available_locales(self):
        assert available_locales() == ["en", "sv"]

    def test_describe_profile(self, profile):
        summary = describe_profile(profile)
        assert summary["feedback_style"] == "Encouraging & Direct"
        assert summary["language_level"] == "Intermediate"
        assert summary["focus_areas"] == "Code quality, Testing, Documentation"
