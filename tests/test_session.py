"""Tests for the async feedback session: revision checks and cancellation."""

import asyncio

import pytest

from persona_feedback.tools.feedback_composer.composer import compose_feedback
from persona_feedback.tools.feedback_composer.errors import (
    NoOpError,
    StaleRevisionError,
    SupersededError,
    UnknownActionError,
)
from persona_feedback.tools.feedback_composer.quick_actions import (
    HIGHLIGHT_STRENGTHS,
    REGENERATE,
    SUGGEST_NEXT_STEPS,
    SUMMARIZE_KEY_ISSUES,
)
from persona_feedback.tools.feedback_composer.session import FeedbackSession


class BlockingBackend:
    """Composition backend that can be told to hang until cancelled."""

    def __init__(self):
        self.block = False
        self.started = asyncio.Event()
        self.calls = 0

    async def __call__(self, store, instructions, profile):
        self.calls += 1
        if self.block:
            self.started.set()
            await asyncio.Event().wait()
        return compose_feedback(store, instructions, profile)


@pytest.fixture
def session(findings, instructions, profile):
    return FeedbackSession(findings, profile, instructions)


@pytest.mark.asyncio
async def test_compose_with_default_backend(session):
    draft = await session.compose()
    assert draft.version == (0, 0)
    assert draft.fidelity_score is not None
    assert session.draft is draft
    assert session.history == [("compose", 0, 0)]


@pytest.mark.asyncio
async def test_apply_advances_revision(session):
    await session.compose()
    draft = await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)
    assert draft.revision == 1
    draft = await session.apply(HIGHLIGHT_STRENGTHS, base_revision=1)
    assert draft.revision == 2
    assert session.history[-1] == (HIGHLIGHT_STRENGTHS, 0, 2)


@pytest.mark.asyncio
async def test_stale_revision_rejected(session):
    """An edit based on revision N-1 fails once the session is at revision N."""
    await session.compose()
    await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)
    with pytest.raises(StaleRevisionError) as exc_info:
        await session.apply(SUGGEST_NEXT_STEPS, base_revision=0)
    assert exc_info.value.current == (0, 1)
    assert session.draft.revision == 1


@pytest.mark.asyncio
async def test_double_click_applies_once(session):
    await session.compose()
    results = await asyncio.gather(
        session.apply(SUGGEST_NEXT_STEPS, base_revision=0),
        session.apply(SUGGEST_NEXT_STEPS, base_revision=0),
        return_exceptions=True,
    )
    assert sum(isinstance(r, StaleRevisionError) for r in results) == 1
    assert session.draft.revision == 1


@pytest.mark.asyncio
async def test_apply_before_compose_is_stale(session):
    with pytest.raises(StaleRevisionError):
        await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)


@pytest.mark.asyncio
async def test_regenerate_starts_next_generation(session):
    await session.compose()
    await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)
    draft = await session.regenerate()
    assert draft.version == (1, 0)
    assert draft.applied_actions == (SUMMARIZE_KEY_ISSUES, REGENERATE)

    # revision 0 of the old generation is not the current draft
    with pytest.raises(StaleRevisionError):
        await session.apply(SUGGEST_NEXT_STEPS, base_revision=0, base_generation=0)
    draft = await session.apply(SUGGEST_NEXT_STEPS, base_revision=0, base_generation=1)
    assert draft.version == (1, 1)


@pytest.mark.asyncio
async def test_regenerate_through_apply(session):
    await session.compose()
    draft = await session.apply(REGENERATE, base_revision=0)
    assert draft.version == (1, 0)
    assert [entry[0] for entry in session.history] == ["compose", REGENERATE]


@pytest.mark.asyncio
async def test_failed_edits_leave_session_unchanged(session):
    await session.compose()
    await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)
    with pytest.raises(NoOpError):
        await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=1)
    with pytest.raises(UnknownActionError):
        await session.apply("translate", base_revision=1)
    assert session.version == (0, 1)
    assert len(session.history) == 2


@pytest.mark.asyncio
async def test_new_composition_supersedes_in_flight(findings, instructions, profile):
    backend = BlockingBackend()
    session = FeedbackSession(findings, profile, instructions, backend=backend)

    backend.block = True
    first = asyncio.create_task(session.compose())
    await backend.started.wait()
    assert session.composing

    backend.block = False
    second = await session.regenerate()

    with pytest.raises(SupersededError):
        await first
    assert session.draft is second
    assert session.history == [(REGENERATE, 0, 0)]
    assert backend.calls == 2


@pytest.mark.asyncio
async def test_edit_cancels_in_flight_regeneration(findings, instructions, profile):
    backend = BlockingBackend()
    session = FeedbackSession(findings, profile, instructions, backend=backend)
    await session.compose()

    backend.block = True
    regeneration = asyncio.create_task(session.regenerate())
    await backend.started.wait()

    edited = await session.apply(SUMMARIZE_KEY_ISSUES, base_revision=0)
    with pytest.raises(SupersededError):
        await regeneration

    assert session.draft is edited
    assert session.version == (0, 1)
    assert not session.composing


@pytest.mark.asyncio
async def test_caller_cancellation_is_not_superseded(findings, instructions, profile):
    backend = BlockingBackend()
    backend.block = True
    session = FeedbackSession(findings, profile, instructions, backend=backend)

    task = asyncio.create_task(session.compose())
    await backend.started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert session.draft is None


@pytest.mark.asyncio
async def test_replace_findings_used_on_regenerate(session, findings):
    await session.compose()
    session.replace_findings([f for f in findings if not f.is_issue])
    draft = await session.regenerate()
    assert draft.source_finding_ids == frozenset({"s1", "s2"})
