"""Immutable store of the findings for one assessment run."""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .models import Finding, FindingKind, Severity

LOG = logging.getLogger(__name__)

SEVERITY_RANK = {Severity.HIGH: 0, Severity.MEDIUM: 1, Severity.LOW: 2}


class FindingStore:
    """
    Findings keyed by id, kept in the order the analyzer produced them.

    The store never changes after construction; every accessor returns a new
    list so callers cannot alter the stored order.
    """

    def __init__(self, findings: Iterable[Union[Finding, dict]] = ()):
        items: List[Finding] = []
        by_id: Dict[str, Finding] = {}
        for finding in findings:
            if isinstance(finding, dict):
                finding = Finding.model_validate(finding)
            if finding.id in by_id:
                raise ValueError(f"Duplicate finding id: {finding.id!r}")
            by_id[finding.id] = finding
            items.append(finding)
        self._findings: Tuple[Finding, ...] = tuple(items)
        self._by_id = by_id
        LOG.debug("FindingStore holds %d findings (%d issues)", len(items), len(self.issues()))

    @classmethod
    def coerce(cls, findings: Union["FindingStore", Iterable[Union[Finding, dict]], None]) -> "FindingStore":
        if isinstance(findings, FindingStore):
            return findings
        return cls(findings or ())

    def __iter__(self) -> Iterator[Finding]:
        return iter(self._findings)

    def __len__(self) -> int:
        return len(self._findings)

    def __contains__(self, finding_id: object) -> bool:
        return finding_id in self._by_id

    def get(self, finding_id: str) -> Optional[Finding]:
        return self._by_id.get(finding_id)

    @property
    def ids(self) -> Tuple[str, ...]:
        return tuple(f.id for f in self._findings)

    def issues(self) -> List[Finding]:
        return [f for f in self._findings if f.kind == FindingKind.ISSUE]

    def strengths(self) -> List[Finding]:
        return [f for f in self._findings if f.kind == FindingKind.STRENGTH]

    def issues_by_severity(self) -> List[Finding]:
        """Issues ordered high to low; equal severities keep insertion order."""
        return sorted(self.issues(), key=lambda f: SEVERITY_RANK[f.severity])

    def count_by_severity(self) -> Dict[Severity, int]:
        counts = {severity: 0 for severity in Severity}
        for issue in self.issues():
            counts[issue.severity] += 1
        return counts
