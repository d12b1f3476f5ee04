"""Async session owning the current draft of one assessment.

Compositions run as tasks so a newer request can cancel one that is still
in flight; edits are serialised and checked against the draft version the
caller last saw.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Iterable, List, Optional, Tuple, Union

from .composer import compose_feedback
from .errors import StaleRevisionError, SupersededError
from .fidelity import with_score
from .findings import FindingStore
from .grade_recommender import GradeThresholds
from .models import FeedbackDraft, Finding, Instructions, StyleProfile
from .quick_actions import REGENERATE, apply_quick_action

LOG = logging.getLogger(__name__)

COMPOSE = "compose"

ComposeBackend = Callable[[FindingStore, Instructions, StyleProfile], Awaitable[FeedbackDraft]]
HistoryEntry = Tuple[str, int, int]


def threaded_backend(thresholds: Optional[GradeThresholds] = None) -> ComposeBackend:
    """Backend running the synchronous composer in a worker thread."""
    async def backend(store: FindingStore, instructions: Instructions, profile: StyleProfile) -> FeedbackDraft:
        return await asyncio.to_thread(compose_feedback, store, instructions, profile, thresholds)
    return backend


class FeedbackSession:
    """
    Current draft, its version and the audit history for one assessment.

    Only the latest composition request may complete: starting a composition
    or applying an edit cancels any composition still running, and the caller
    waiting on it gets SupersededError.
    """

    def __init__(
        self,
        findings: Union[FindingStore, Iterable[Finding]],
        profile: StyleProfile,
        instructions: Optional[Instructions] = None,
        backend: Optional[ComposeBackend] = None,
        thresholds: Optional[GradeThresholds] = None,
    ):
        self.store = FindingStore.coerce(findings)
        self.profile = profile
        self.instructions = instructions or Instructions()
        self.thresholds = thresholds
        self._backend = backend or threaded_backend(thresholds)
        self.draft: Optional[FeedbackDraft] = None
        self.history: List[HistoryEntry] = []
        self._lock = asyncio.Lock()
        self._task: Optional[asyncio.Future] = None
        self._ticket = 0

    @property
    def version(self) -> Optional[Tuple[int, int]]:
        return self.draft.version if self.draft is not None else None

    @property
    def composing(self) -> bool:
        return self._task is not None and not self._task.done()

    def replace_findings(self, findings: Union[FindingStore, Iterable[Finding]]) -> None:
        """Use new findings for later compositions and edits; the current draft is kept."""
        self.store = FindingStore.coerce(findings)

    def _invalidate(self) -> int:
        """Cancel any in-flight composition and return a fresh ticket."""
        if self.composing:
            LOG.info("Cancelling in-flight composition for %s", self.profile.teacher_id)
            self._task.cancel()
        self._ticket += 1
        return self._ticket

    async def _compose(self, action: str) -> FeedbackDraft:
        ticket = self._invalidate()
        previous = self.draft
        task = asyncio.ensure_future(self._backend(self.store, self.instructions, self.profile))
        self._task = task
        try:
            draft = await task
        except asyncio.CancelledError:
            if ticket != self._ticket:
                raise SupersededError(f"{action} was superseded by a newer request") from None
            raise
        if ticket != self._ticket:
            LOG.info("Discarding superseded %s result", action)
            raise SupersededError(f"{action} was superseded by a newer request")

        if action == REGENERATE and previous is not None:
            draft = draft.model_copy(update={
                "applied_actions": previous.applied_actions + (REGENERATE,),
                "generation": previous.generation + 1,
                "revision": 0,
            })
        draft = with_score(draft, self.profile)
        self.draft = draft
        self.history.append((action, draft.generation, draft.revision))
        return draft

    async def compose(self) -> FeedbackDraft:
        """Compose the first draft (generation 0, revision 0)."""
        return await self._compose(COMPOSE)

    async def regenerate(self) -> FeedbackDraft:
        """Compose again from the session's findings, starting the next generation."""
        return await self._compose(REGENERATE)

    async def apply(self, action: str, base_revision: int, base_generation: Optional[int] = None) -> FeedbackDraft:
        """
        Apply a quick action to the current draft.

        Args:
            action: Quick action name
            base_revision: Revision of the draft the caller is editing
            base_generation: Generation of that draft; defaults to the current one

        Returns:
            The new current draft

        Raises:
            StaleRevisionError: If the base version is not the current version
        """
        async with self._lock:
            current = self.version
            if current is None:
                raise StaleRevisionError((base_generation, base_revision), None)
            requested = (current[0] if base_generation is None else base_generation, base_revision)
            if requested != current:
                raise StaleRevisionError(requested, current)

            if action != REGENERATE:
                draft = apply_quick_action(self.draft, action, self.store, self.profile, self.thresholds)
                self._invalidate()
                self.draft = draft
                self.history.append((action, draft.generation, draft.revision))
                return draft

        return await self.regenerate()
