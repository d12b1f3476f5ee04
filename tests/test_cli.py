"""Tests for the feedback-compose command."""

import pytest
import yaml
from click.testing import CliRunner

from persona_feedback.tools.feedback_composer.cli import main


@pytest.fixture
def inputs(tmp_path):
    findings = tmp_path / "findings.yaml"
    findings.write_text(yaml.dump([
        {"id": "s1", "kind": "strength", "title": "Good application of React hooks"},
        {"id": "i1", "kind": "issue", "severity": "high", "title": "Missing error handling",
         "suggestedFix": "Check response.ok in every fetch call."},
        {"id": "i2", "kind": "issue", "severity": "low", "title": "Inconsistent naming"},
    ]))
    profile = tmp_path / "profile.yaml"
    profile.write_text(yaml.dump({
        "teacherId": "anna",
        "displayName": "Anna Lindqvist",
        "tone": "encouraging+direct",
        "languageLevel": "intermediate",
        "focusAreas": ["code quality", "testing"],
        "preferredSentenceLength": "medium",
    }))
    instructions = tmp_path / "assignment.md"
    instructions.write_text("Build a web application that lists products.")
    return findings, profile, instructions


def test_compose(inputs):
    findings, profile, instructions = inputs
    result = CliRunner().invoke(main, ["-f", str(findings), "-p", str(profile), "-i", str(instructions)])
    assert result.exit_code == 0, result.output
    assert "Personality match" in result.output
    assert "Encouraging & Direct" in result.output
    assert "Missing error handling" in result.output


def test_swedish_grade_label(inputs):
    findings, profile, _ = inputs
    result = CliRunner().invoke(main, ["-f", str(findings), "-p", str(profile), "--locale", "sv"])
    assert result.exit_code == 0, result.output
    assert "Godkänt (G)" in result.output


def test_actions_and_output(inputs, tmp_path):
    findings, profile, instructions = inputs
    output = tmp_path / "draft.yaml"
    result = CliRunner().invoke(main, [
        "-f", str(findings), "-p", str(profile), "-i", str(instructions),
        "-a", "summarize_key_issues", "-a", "summarize_key_issues", "-a", "suggest_next_steps",
        "-o", str(output),
    ])
    assert result.exit_code == 0, result.output
    assert "Skipped summarize_key_issues" in result.output

    saved = yaml.safe_load(output.read_text())
    assert saved["applied_actions"] == ["summarize_key_issues", "suggest_next_steps"]
    assert saved["revision"] == 2
    assert saved["grade"]["label"] == "Pass"
    assert "Missing error handling" in saved["grade"]["rationale"]


def test_unknown_action_rejected(inputs):
    findings, profile, _ = inputs
    result = CliRunner().invoke(main, ["-f", str(findings), "-p", str(profile), "-a", "rewrite"])
    assert result.exit_code != 0


def test_invalid_profile(inputs, tmp_path):
    findings, _, _ = inputs
    bad = tmp_path / "bad.yaml"
    bad.write_text(yaml.dump({"teacherId": "anna", "displayName": "Anna", "focusAreas": []}))
    result = CliRunner().invoke(main, ["-f", str(findings), "-p", str(bad)])
    assert result.exit_code == 1
    assert "Failed to load inputs" in result.output


def test_nothing_to_compose(tmp_path, inputs):
    _, profile, _ = inputs
    empty = tmp_path / "empty.yaml"
    empty.write_text("[]")
    result = CliRunner().invoke(main, ["-f", str(empty), "-p", str(profile)])
    assert result.exit_code == 1
    assert "Could not compose feedback" in result.output
