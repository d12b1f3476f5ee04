"""Tests for loading findings, profiles and instructions from files."""

import pytest
import yaml

from persona_feedback.tools.feedback_composer.loaders import (
    load_findings,
    load_instructions,
    load_profile,
)
from persona_feedback.tools.feedback_composer.models import Tone

FINDINGS = [
    {"id": "s1", "kind": "strength", "title": "Clean pagination implementation"},
    {
        "id": "i1",
        "kind": "issue",
        "severity": "high",
        "title": "Missing error handling",
        "evidenceSnippet": "await fetch(url)",
        "suggestedFix": "Catch network errors.",
    },
]


def test_load_findings_list(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text(yaml.dump(FINDINGS))
    store = load_findings(path)
    assert store.ids == ("s1", "i1")
    assert store.get("i1").suggested_fix == "Catch network errors."


def test_load_findings_nested(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text(yaml.dump({"findings": FINDINGS}))
    assert len(load_findings(path)) == 2


def test_load_empty_findings(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text("")
    assert len(load_findings(path)) == 0


def test_invalid_finding_raises_value_error(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text(yaml.dump([{"id": "i1", "kind": "issue", "title": "No severity"}]))
    with pytest.raises(ValueError, match="Invalid finding"):
        load_findings(path)


def test_malformed_yaml_raises_value_error(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text("- id: [unclosed")
    with pytest.raises(ValueError, match="Invalid YAML"):
        load_findings(path)


def test_findings_must_be_a_list(tmp_path):
    path = tmp_path / "findings.yaml"
    path.write_text(yaml.dump({"id": "s1"}))
    with pytest.raises(ValueError, match="list"):
        load_findings(path)


def test_load_profile(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(yaml.dump({"profile": {
        "teacherId": "anna",
        "displayName": "Anna Lindqvist",
        "tone": "encouraging+direct",
        "focusAreas": ["code quality", "testing"],
    }}))
    profile = load_profile(path)
    assert profile.tone == Tone.ENCOURAGING_DIRECT
    assert profile.focus_areas == ("code quality", "testing")


def test_invalid_profile(tmp_path):
    path = tmp_path / "profile.yaml"
    path.write_text(yaml.dump({"teacher_id": "anna", "display_name": "Anna", "focus_areas": []}))
    with pytest.raises(ValueError, match="Invalid style profile"):
        load_profile(path)


def test_load_instructions_yaml(tmp_path):
    path = tmp_path / "instructions.yaml"
    path.write_text(yaml.dump({"assignmentText": "Build a todo app.", "studentName": "Alex"}))
    instructions = load_instructions(path)
    assert instructions.assignment_text == "Build a todo app."
    assert instructions.student_name == "Alex"


def test_load_instructions_text(tmp_path):
    path = tmp_path / "assignment.md"
    path.write_text("Build a todo app.\n\nUse React.\n")
    assert load_instructions(path).assignment_text == "Build a todo app.\n\nUse React."


def test_missing_instructions_are_empty():
    assert load_instructions(None).is_empty()
