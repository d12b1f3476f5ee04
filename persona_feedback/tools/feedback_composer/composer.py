"""Compose a feedback draft in a teacher's style from findings and instructions."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from persona_feedback.libs.text_metrics import (
    DIRECT,
    HEDGED,
    LONG_MIN,
    SHORT_LIMIT,
    band_score,
    count_words,
    lower_first,
    neutral_phrase,
    render_template,
    split_sentences,
    strip_terminal,
)
from .errors import EmptyInputError
from .fidelity import TONE_BANDS
from .findings import FindingStore
from .grade_recommender import GradeThresholds, recommend_grade
from .labels import grade_label
from .models import (
    DraftSection,
    FeedbackDraft,
    Finding,
    Instructions,
    LanguageLevel,
    SectionKind,
    SentenceLength,
    StyleProfile,
    Tone,
)

LOG = logging.getLogger(__name__)

# Elaborations add exactly one clause marker each; basic prose uses none,
# intermediate one and advanced two per sentence.
INTERMEDIATE_ELABORATIONS: Dict[str, Tuple[str, ...]] = {
    "overview": ("which covers the main requirements of the assignment",),
    "strength": ("which is exactly what the assignment asks for",),
    "issue": ("because it affects the quality of the code",),
    "grade": ("which reflects the findings described above",),
    "closing": ("because those changes will matter in later assignments",),
    "improvement": ("which should make the next version stronger",),
    "next_steps": ("because they will have the biggest effect",),
    "highlight": ("since those parts of the work deserve recognition",),
}

ADVANCED_ELABORATIONS: Dict[str, Tuple[str, ...]] = {
    "overview": (
        "which addresses the core functional requirements of the assignment",
        "and the observations below concern architecture, maintainability and robustness",
    ),
    "strength": (
        "which demonstrates a solid grasp of the underlying concepts",
        "because it keeps responsibilities cohesive and maintainable",
    ),
    "issue": (
        "because it undermines the robustness of the implementation",
        "which matters for long-term maintainability",
    ),
    "grade": (
        "which reflects the weighting of strengths against issues",
        "since the most severe findings determine the ceiling",
    ),
    "closing": (
        "because these refinements compound across later assignments",
        "which is what professional codebases expect",
    ),
    "improvement": (
        "which would strengthen the overall architecture",
        "because incremental refactoring keeps regressions contained",
    ),
    "next_steps": (
        "because they offer the greatest return on effort",
        "which keeps the revision focused",
    ),
    "highlight": (
        "since those decisions reflect genuine engineering judgement",
        "which is worth carrying into future projects",
    ),
}

# Short-sentence profiles use one compact phrase carrying the same number of
# clause markers as the full elaborations for the level.
COMPACT_ELABORATIONS: Dict[LanguageLevel, Dict[str, Tuple[str, ...]]] = {
    LanguageLevel.INTERMEDIATE: {
        "overview": ("which covers the brief",),
        "strength": ("which the task needed",),
        "issue": ("because it affects quality",),
        "grade": ("which reflects the findings",),
        "closing": ("since these matter later",),
        "improvement": ("which should help",),
        "next_steps": ("since they matter most",),
        "highlight": ("since they deserve credit",),
    },
    LanguageLevel.ADVANCED: {
        "overview": ("which meets core requirements, though concerns remain",),
        "strength": ("which shows fluency, since coupling stays low",),
        "issue": ("because robustness suffers, which hurts maintainability",),
        "grade": ("which weighs strengths, although severity caps it",),
        "closing": ("since refinements compound, which matters professionally",),
        "improvement": ("which improves cohesion, since coupling drops",),
        "next_steps": ("since they yield most, which keeps revision focused",),
        "highlight": ("since they show judgement, which merits recognition",),
    },
}

# Tone-free phrases used to lengthen sentences towards the preferred bucket
FILLERS = (
    "in this submission",
    "throughout the code you handed in",
    "when I read through the project",
    "compared with what the brief expects",
    "as far as this assignment goes",
    "across the files I looked at",
)

STRENGTH_LEADS = {
    Tone.ENCOURAGING: "I was pleased to see {title}",
    Tone.ENCOURAGING_DIRECT: "I was pleased to see {title}",
    Tone.DIRECT: "Your work shows {title}",
    Tone.CRITICAL: "Your work shows {title}",
    Tone.NEUTRAL: "The submission shows {title}",
}

HIGHLIGHT_LEADS = {
    Tone.ENCOURAGING: "I was really impressed by {title}",
    Tone.ENCOURAGING_DIRECT: "I was really impressed by {title}",
    Tone.DIRECT: "A clear strength is {title}",
    Tone.CRITICAL: "One genuine strength is {title}",
    Tone.NEUTRAL: "A notable strength is {title}",
}

HEDGED_ISSUE_LEADS = {
    Tone.ENCOURAGING: "Building on your solid start, you might want to look at {title}",
    Tone.ENCOURAGING_DIRECT: "You might want to look at {title}",
    Tone.NEUTRAL: "It would be worth reviewing {title}",
    Tone.DIRECT: "It would be worth reviewing {title}",
    Tone.CRITICAL: "It would be worth reviewing {title}",
}

DIRECT_ISSUE_LEADS = {
    Tone.ENCOURAGING: "Even with a solid start, you need to address {title}",
    Tone.ENCOURAGING_DIRECT: "You need to address {title}",
    Tone.NEUTRAL: "The submission needs to address {title}",
    Tone.DIRECT: "You need to address {title}",
    Tone.CRITICAL: "You must fix {title}",
}

IMPROVEMENT_LEADS = {
    Tone.ENCOURAGING: "One idea for {title}",
    Tone.ENCOURAGING_DIRECT: "One idea for {title}",
    Tone.NEUTRAL: "A possible improvement for {title}",
    Tone.DIRECT: "To resolve {title}",
    Tone.CRITICAL: "To resolve {title}",
}

CLOSINGS = {
    HEDGED: "You might find it helpful to revisit the points above before the next assignment",
    DIRECT: "Make sure you work through the points above before the next assignment",
    None: "The points above are the main things to work on before the next assignment",
}

CLOSINGS_WITHOUT_ISSUES = {
    HEDGED: "You might try to push these strengths even further in the next assignment",
    DIRECT: "Keep building on these strengths in the next assignment",
    None: "These strengths give you a good base for the next assignment",
}

CLOSINGS_WITHOUT_FINDINGS = {
    HEDGED: "You might share the complete submission so I can give fuller feedback",
    DIRECT: "Make sure the complete submission is included next time",
    None: "Fuller feedback will follow once the complete submission is available",
}

ENTHUSIASTIC_TONES = (Tone.ENCOURAGING, Tone.ENCOURAGING_DIRECT)

SUBJECT_VERBS = {"build", "create", "write", "implement", "develop", "design", "make", "program", "construct"}
SUBJECT_STOPS = {"that", "which", "who", "with", "using", "for", "to", "from", "in", "where", "so"}
MAX_SUBJECT_WORDS = 8


def assignment_subject(instructions: Instructions) -> str:
    """Short noun phrase naming what the assignment asked for, or "" if there is none."""
    text = instructions.assignment_text.strip() or (instructions.additional_notes or "").strip()
    sentences = split_sentences(text)
    if not sentences:
        return ""
    tokens = strip_terminal(sentences[0]).split()
    if tokens and tokens[0].lower() in SUBJECT_VERBS:
        tokens = tokens[1:]
    for i, token in enumerate(tokens):
        if i >= 2 and token.lower().strip(",;:") in SUBJECT_STOPS:
            tokens = tokens[:i]
            break
    subject = " ".join(tokens[:MAX_SUBJECT_WORDS]).rstrip(",;:")
    return lower_first(neutral_phrase(subject))


def tone_plan(tone: Tone, issue_count: int) -> Tuple[List[bool], Optional[str]]:
    """
    Decide which issue sentences are hedged and how the closing sentence reads.

    Returns one flag per issue (in severity-descending order, True = hedged)
    and the closing tone (HEDGED, DIRECT or None for an unmarked closing).
    Encouraging hedges everything; direct and critical never hedge; the
    balanced tones pick the mix whose softening ratio lands closest to the
    middle of their band, giving the most severe issues the direct sentences.
    """
    if tone == Tone.ENCOURAGING:
        return [True] * issue_count, HEDGED
    if tone in (Tone.DIRECT, Tone.CRITICAL):
        return [False] * issue_count, DIRECT

    low, high = TONE_BANDS[tone]
    center = (low + high) / 2
    best = None
    for order, closing in enumerate((None, DIRECT, HEDGED)):
        for hedged in range(issue_count + 1):
            h = hedged + (closing == HEDGED)
            d = issue_count - hedged + (closing == DIRECT)
            ratio = h / (h + d) if h + d else 0.5
            key = (-band_score(ratio, low, high), abs(ratio - center), order, hedged)
            if best is None or key < best[0]:
                best = (key, hedged, closing)
    _, hedged, closing = best
    return [i >= issue_count - hedged for i in range(issue_count)], closing


class FeedbackComposer:
    """Render findings as prose in the voice described by a style profile."""

    def __init__(self, profile: StyleProfile, thresholds: Optional[GradeThresholds] = None):
        self.profile = profile
        self.thresholds = thresholds or GradeThresholds()

    # Sentence building -------------------------------------------------

    def elaborations(self, kind: str) -> Tuple[str, ...]:
        level = self.profile.language_level
        if level == LanguageLevel.BASIC:
            return ()
        if self.profile.preferred_sentence_length == SentenceLength.SHORT:
            return COMPACT_ELABORATIONS[level][kind]
        if level == LanguageLevel.ADVANCED:
            return ADVANCED_ELABORATIONS[kind]
        return INTERMEDIATE_ELABORATIONS[kind]

    def sentence(self, lead: str, kind: str, *, detail: str = "", tail: str = "", mark: str = ".") -> str:
        """
        Assemble ``lead [(detail)][, elaboration]*[ filler]*[: tail]`` and close it.

        The detail is included for long sentences, and for medium ones when it
        keeps the sentence below the long bucket. Fillers are appended until
        the sentence reaches the preferred bucket; short sentences get none.
        """
        elaborations = self.elaborations(kind)

        def render(use_detail: bool, fillers: Sequence[str]) -> str:
            text = lead
            if use_detail:
                text += f" ({detail})"
            for elaboration in elaborations:
                text += f", {elaboration}"
            for filler in fillers:
                text += f" {filler}"
            if tail:
                text += f": {tail}"
            return text[:1].upper() + text[1:] + mark

        length = self.profile.preferred_sentence_length
        if length == SentenceLength.SHORT:
            return render(False, ())

        use_detail = False
        if detail:
            use_detail = length == SentenceLength.LONG or count_words(render(True, ())) < LONG_MIN
        target = LONG_MIN if length == SentenceLength.LONG else SHORT_LIMIT
        fillers: List[str] = []
        for filler in FILLERS:
            if count_words(render(use_detail, fillers)) >= target:
                break
            fillers.append(filler)
        return render(use_detail, fillers)

    @staticmethod
    def _title(finding: Finding) -> str:
        return lower_first(neutral_phrase(finding.title))

    @staticmethod
    def _detail(finding: Finding) -> str:
        return lower_first(neutral_phrase(finding.description)) if finding.description.strip() else ""

    @staticmethod
    def _fix(finding: Finding) -> str:
        return lower_first(neutral_phrase(finding.suggested_fix)) if finding.has_fix else ""

    def strength_sentence(self, finding: Finding, highlighted: bool = False) -> str:
        leads = HIGHLIGHT_LEADS if highlighted else STRENGTH_LEADS
        mark = "!" if highlighted and self.profile.tone in ENTHUSIASTIC_TONES else "."
        lead = leads[self.profile.tone].format(title=self._title(finding))
        return self.sentence(lead, "strength", detail=self._detail(finding), mark=mark)

    def issue_sentence(self, finding: Finding, hedged: bool) -> str:
        leads = HEDGED_ISSUE_LEADS if hedged else DIRECT_ISSUE_LEADS
        lead = leads[self.profile.tone].format(title=self._title(finding))
        return self.sentence(lead, "issue", detail=self._detail(finding), tail=self._fix(finding))

    def improvement_sentence(self, finding: Finding) -> str:
        lead = IMPROVEMENT_LEADS[self.profile.tone].format(title=self._title(finding))
        return self.sentence(lead, "improvement", tail=self._fix(finding))

    def highlight_intro(self) -> str:
        return self.sentence("I want to start with what you did well", "highlight")

    def next_steps_intro(self) -> str:
        return self.sentence("Here are the next steps I would focus on", "next_steps")

    def template_values(self, instructions: Instructions) -> Dict[str, str]:
        return {
            "student": (instructions.student_name or "").strip() or "there",
            "teacher": self.profile.display_name,
        }

    # Sections ----------------------------------------------------------

    def strengths_section(self, strengths: Sequence[Finding], highlighted: bool = False) -> DraftSection:
        sentences = [self.strength_sentence(f, highlighted) for f in strengths]
        if highlighted:
            sentences.insert(0, self.highlight_intro())
        return DraftSection(
            kind=SectionKind.STRENGTHS,
            text=" ".join(sentences),
            finding_ids=tuple(f.id for f in strengths),
        )

    def _overview_section(self, instructions: Instructions) -> DraftSection:
        subject = assignment_subject(instructions)
        lead = f"I have reviewed your work on {subject}" if subject else "I have reviewed your submission"
        return DraftSection(kind=SectionKind.OVERVIEW, text=self.sentence(lead, "overview"))

    def _issues_section(self, issues: Sequence[Finding], hedged_flags: Sequence[bool]) -> DraftSection:
        sentences = [self.issue_sentence(f, hedged) for f, hedged in zip(issues, hedged_flags)]
        return DraftSection(
            kind=SectionKind.ISSUES,
            text=" ".join(sentences),
            finding_ids=tuple(f.id for f in issues),
        )

    def _grade_section(self, store: FindingStore, closing_tone: Optional[str]) -> DraftSection:
        recommendation = recommend_grade(store, self.thresholds)
        if len(store):
            statement = self.sentence(f"My recommended grade is {grade_label(recommendation.grade)}", "grade")
        else:
            statement = self.sentence("There is not enough evidence yet to recommend a grade", "grade")
        if store.issues():
            closings = CLOSINGS
        elif len(store):
            closings = CLOSINGS_WITHOUT_ISSUES
        else:
            closings = CLOSINGS_WITHOUT_FINDINGS
        closing = self.sentence(closings[closing_tone], "closing")
        return DraftSection(
            kind=SectionKind.GRADE,
            text=f"{statement} {closing}",
            finding_ids=recommendation.driving_finding_ids,
        )

    # Composition -------------------------------------------------------

    def compose(
        self,
        findings: Union[FindingStore, Iterable[Finding]],
        instructions: Optional[Instructions] = None,
    ) -> FeedbackDraft:
        """Build a revision-0 draft; raises EmptyInputError when there is nothing to say."""
        store = FindingStore.coerce(findings)
        instructions = instructions or Instructions()
        if not len(store) and instructions.is_empty():
            raise EmptyInputError("No findings and no instructions to compose feedback from")

        values = self.template_values(instructions)
        issues = store.issues_by_severity()
        strengths = store.strengths()
        hedged_flags, closing_tone = tone_plan(self.profile.tone, len(issues))

        sections = [
            DraftSection(kind=SectionKind.SALUTATION, text=render_template(self.profile.salutation, values)),
            self._overview_section(instructions),
        ]
        if strengths:
            sections.append(self.strengths_section(strengths))
        if issues:
            sections.append(self._issues_section(issues, hedged_flags))
        sections.append(self._grade_section(store, closing_tone))
        sections.append(
            DraftSection(kind=SectionKind.SIGNOFF, text=render_template(self.profile.signoff, values))
        )

        referenced = {fid for section in sections for fid in section.finding_ids}
        LOG.info(
            "Composed draft for %s: %d strengths, %d issues",
            self.profile.teacher_id, len(strengths), len(issues),
        )
        return FeedbackDraft(
            sections=tuple(sections),
            instructions=instructions,
            source_finding_ids=frozenset(referenced),
        )


def compose_feedback(
    findings: Union[FindingStore, Iterable[Finding]],
    instructions: Optional[Instructions],
    profile: StyleProfile,
    thresholds: Optional[GradeThresholds] = None,
) -> FeedbackDraft:
    """Compose a revision-0 draft (unscored) from findings, instructions and a style profile."""
    return FeedbackComposer(profile, thresholds).compose(findings, instructions)
