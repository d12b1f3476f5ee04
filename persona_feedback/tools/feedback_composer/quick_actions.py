"""Named, composable edits applied to an existing feedback draft."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from persona_feedback.libs.text_metrics import ensure_terminal, lower_first, strip_terminal
from .composer import FeedbackComposer
from .errors import NoOpError, UnknownActionError
from .fidelity import with_score
from .findings import FindingStore
from .grade_recommender import GradeThresholds
from .models import DraftSection, FeedbackDraft, Finding, SectionKind, StyleProfile

LOG = logging.getLogger(__name__)

SUMMARIZE_KEY_ISSUES = "summarize_key_issues"
ADD_SUGGESTED_IMPROVEMENTS = "add_suggested_improvements"
HIGHLIGHT_STRENGTHS = "highlight_strengths"
SUGGEST_NEXT_STEPS = "suggest_next_steps"
REGENERATE = "regenerate"

MAX_NEXT_STEPS = 3

QuickAction = Callable[[FeedbackDraft, FindingStore, FeedbackComposer], FeedbackDraft]


def _place(sections: List[DraftSection], section: DraftSection, after: Sequence[SectionKind]) -> List[DraftSection]:
    """
    Replace the section of the same kind in place, or insert the new section
    after the first of ``after`` present in the draft (at the top if none is).
    """
    result = list(sections)
    for i, existing in enumerate(result):
        if existing.kind == section.kind:
            result[i] = section
            return result
    index = 0
    kinds = [s.kind for s in result]
    for kind in after:
        if kind in kinds:
            index = kinds.index(kind) + 1
            break
    result.insert(index, section)
    return result


def _edited(draft: FeedbackDraft, action: str, sections: Sequence[DraftSection]) -> FeedbackDraft:
    """Next revision of a draft; finding references only ever grow."""
    referenced = set(draft.source_finding_ids)
    for section in sections:
        referenced.update(section.finding_ids)
    return draft.model_copy(update={
        "sections": tuple(sections),
        "source_finding_ids": frozenset(referenced),
        "applied_actions": draft.applied_actions + (action,),
        "revision": draft.revision + 1,
        "fidelity_score": None,
    })


def _one_line(text: str) -> str:
    return " ".join(text.split())


def summarize_key_issues(draft: FeedbackDraft, store: FindingStore, composer: FeedbackComposer) -> FeedbackDraft:
    """Collapse the issues paragraph to one bullet per issue, most severe first."""
    issues = store.issues_by_severity()
    if not issues:
        return draft
    section = DraftSection(
        kind=SectionKind.ISSUES,
        text="\n".join(f"- {strip_terminal(_one_line(f.title))}" for f in issues),
        finding_ids=tuple(f.id for f in issues),
    )
    after = (SectionKind.STRENGTHS, SectionKind.OVERVIEW, SectionKind.SALUTATION)
    return _edited(draft, SUMMARIZE_KEY_ISSUES, _place(list(draft.sections), section, after))


def add_suggested_improvements(draft: FeedbackDraft, store: FindingStore, composer: FeedbackComposer) -> FeedbackDraft:
    """Add a paragraph spelling out the suggested fix of every issue that has one."""
    existing = "\n\n".join(s.text for s in draft.sections if s.kind != SectionKind.IMPROVEMENTS)
    sentences: List[str] = []
    ids: List[str] = []
    for finding in store.issues_by_severity():
        if not finding.has_fix:
            continue
        sentence = composer.improvement_sentence(finding)
        if sentence in existing:
            continue
        sentences.append(sentence)
        ids.append(finding.id)
    if not sentences:
        return draft
    section = DraftSection(kind=SectionKind.IMPROVEMENTS, text=" ".join(sentences), finding_ids=tuple(ids))
    after = (SectionKind.ISSUES, SectionKind.STRENGTHS, SectionKind.OVERVIEW, SectionKind.SALUTATION)
    return _edited(draft, ADD_SUGGESTED_IMPROVEMENTS, _place(list(draft.sections), section, after))


def highlight_strengths(draft: FeedbackDraft, store: FindingStore, composer: FeedbackComposer) -> FeedbackDraft:
    """Open the body with the strengths, phrased more emphatically."""
    strengths = store.strengths()
    if not strengths:
        raise NoOpError(HIGHLIGHT_STRENGTHS)
    section = composer.strengths_section(strengths, highlighted=True)
    sections = [s for s in draft.sections if s.kind != SectionKind.STRENGTHS]
    return _edited(draft, HIGHLIGHT_STRENGTHS, _place(sections, section, (SectionKind.SALUTATION,)))


def _next_step(finding: Finding) -> str:
    if finding.has_fix:
        step = _one_line(finding.suggested_fix)
        return ensure_terminal(step[:1].upper() + step[1:])
    return f"Revisit {lower_first(strip_terminal(_one_line(finding.title)))}."


def suggest_next_steps(draft: FeedbackDraft, store: FindingStore, composer: FeedbackComposer) -> FeedbackDraft:
    """Add a numbered list of up to three next actions just before the signoff."""
    issues = store.issues_by_severity()[:MAX_NEXT_STEPS]
    if issues:
        steps = [_next_step(f) for f in issues]
    else:
        steps = [f"Keep practising {composer.profile.focus_areas[0]} in your next assignment."]
    lines = [composer.next_steps_intro()]
    lines.extend(f"{i}. {step}" for i, step in enumerate(steps, 1))
    section = DraftSection(
        kind=SectionKind.NEXT_STEPS,
        text="\n".join(lines),
        finding_ids=tuple(f.id for f in issues),
    )

    sections = [s for s in draft.sections if s.kind != SectionKind.NEXT_STEPS]
    kinds = [s.kind for s in sections]
    index = kinds.index(SectionKind.SIGNOFF) if SectionKind.SIGNOFF in kinds else len(sections)
    sections.insert(index, section)
    return _edited(draft, SUGGEST_NEXT_STEPS, sections)


def regenerate(draft: FeedbackDraft, store: FindingStore, composer: FeedbackComposer) -> FeedbackDraft:
    """Compose from scratch: revision 0 of the next generation, with the action history kept."""
    fresh = composer.compose(store, draft.instructions)
    return fresh.model_copy(update={
        "applied_actions": draft.applied_actions + (REGENERATE,),
        "generation": draft.generation + 1,
        "revision": 0,
    })


QUICK_ACTIONS: Dict[str, QuickAction] = {
    SUMMARIZE_KEY_ISSUES: summarize_key_issues,
    ADD_SUGGESTED_IMPROVEMENTS: add_suggested_improvements,
    HIGHLIGHT_STRENGTHS: highlight_strengths,
    SUGGEST_NEXT_STEPS: suggest_next_steps,
    REGENERATE: regenerate,
}


def apply_quick_action(
    draft: FeedbackDraft,
    action: str,
    findings: Union[FindingStore, Iterable[Finding]],
    profile: StyleProfile,
    thresholds: Optional[GradeThresholds] = None,
) -> FeedbackDraft:
    """
    Apply a named quick action and re-score the result.

    Args:
        draft: Draft to transform; it is never modified
        action: One of QUICK_ACTIONS
        findings: Findings of the assessment the draft was composed from
        profile: Style profile used for rendering and scoring
        thresholds: Grade thresholds used when regenerating

    Returns:
        A new, scored draft

    Raises:
        UnknownActionError: If the action name is not recognised
        NoOpError: If the action would leave the text byte-identical
    """
    if action not in QUICK_ACTIONS:
        raise UnknownActionError(action)

    store = FindingStore.coerce(findings)
    composer = FeedbackComposer(profile, thresholds)
    result = QUICK_ACTIONS[action](draft, store, composer)
    if result.text == draft.text:
        raise NoOpError(action)

    result = with_score(result, profile)
    LOG.info(
        "Applied %s: version %s -> %s, fidelity %s",
        action, draft.version, result.version, result.fidelity_score,
    )
    return result
