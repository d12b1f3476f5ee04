"""Compose feedback for many submissions concurrently using async/await."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml
from tqdm.asyncio import tqdm

from persona_feedback.libs.config_loader import ConfigType, get_config
from .errors import NoOpError
from .grade_recommender import GradeThresholds, recommend_grade
from .labels import DEFAULT_LOCALE, grade_label
from .loaders import load_findings, load_instructions
from .models import FeedbackDraft, GradeRecommendation, Instructions, StyleProfile
from .quick_actions import apply_quick_action
from .session import FeedbackSession

LOG = logging.getLogger(__name__)

FINDINGS_FILENAME = "findings.yaml"
INSTRUCTIONS_FILENAMES = ("instructions.yaml", "instructions.yml", "instructions.md", "instructions.txt")


@dataclass
class BatchCompositionResult:
    """Result of composing feedback for one submission."""
    submission_dir: str
    success: bool
    grade: Optional[str] = None
    fidelity_score: Optional[int] = None
    error_message: Optional[str] = None
    recommendation: Optional[GradeRecommendation] = None
    draft: Optional[FeedbackDraft] = None
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for YAML serialization."""
        data = {
            'submission_dir': self.submission_dir,
            'success': self.success,
            'grade': self.grade,
            'fidelity_score': self.fidelity_score,
            'timestamp': self.timestamp,
        }
        if self.error_message:
            data['error_message'] = self.error_message
        if self.recommendation:
            data['rationale'] = self.recommendation.rationale
        return data


class BatchComposer:
    """Compose feedback for every submission directory that holds a findings file."""

    def __init__(self, configs: ConfigType, profile: StyleProfile,
                 max_concurrent: Optional[int] = None, locale: Optional[str] = None):
        """
        Initialize the batch composer.

        Args:
            configs: Configuration dictionary
            profile: Style profile every draft is written in
            max_concurrent: Maximum number of concurrent compositions (overrides config)
            locale: Grade label locale (overrides config)
        """
        self.configs = configs
        self.profile = profile
        self.thresholds = GradeThresholds.from_config(configs)
        if max_concurrent is not None:
            self.max_concurrent = max_concurrent
        else:
            self.max_concurrent = get_config("tools.max_threads", configs, default=4)
        self.locale = locale or get_config("feedback.locale", configs, default=DEFAULT_LOCALE)
        LOG.info("BatchComposer initialized with max_concurrent=%s", self.max_concurrent)

    def find_submission_directories(self, submissions_dir: Path) -> List[Path]:
        """Directories directly under ``submissions_dir`` that contain a findings file."""
        submission_dirs = [
            item for item in submissions_dir.iterdir()
            if item.is_dir() and not item.name.startswith('.') and (item / FINDINGS_FILENAME).is_file()
        ]
        submission_dirs.sort()
        return submission_dirs

    def _instructions_for(self, submission_dir: Path, shared: Instructions) -> Instructions:
        for name in INSTRUCTIONS_FILENAMES:
            path = submission_dir / name
            if path.is_file():
                return load_instructions(path)
        return shared

    async def _compose_single_async(self, submission_dir: Path, shared: Instructions,
                                    actions: Sequence[str], feedback_filename: str) -> BatchCompositionResult:
        dir_name = submission_dir.name
        LOG.debug("Composing feedback for %s", dir_name)
        try:
            store = load_findings(submission_dir / FINDINGS_FILENAME)
            instructions = self._instructions_for(submission_dir, shared)
            recommendation = recommend_grade(store, self.thresholds)

            session = FeedbackSession(store, self.profile, instructions, thresholds=self.thresholds)
            draft = await session.compose()
            for action in actions:
                try:
                    draft = apply_quick_action(draft, action, store, self.profile, self.thresholds)
                except NoOpError:
                    LOG.debug("Skipping %s for %s: no change", action, dir_name)

            with open(submission_dir / feedback_filename, 'w', encoding='utf-8') as f:
                yaml.dump(draft.to_yaml_dict(), f, default_flow_style=False, sort_keys=False, allow_unicode=True)

            return BatchCompositionResult(
                submission_dir=dir_name,
                success=True,
                grade=grade_label(recommendation.grade, self.locale),
                fidelity_score=draft.fidelity_score,
                recommendation=recommendation,
                draft=draft,
            )
        except Exception as e:
            LOG.error("Error composing feedback for %s: %s", dir_name, e)
            return BatchCompositionResult(submission_dir=dir_name, success=False, error_message=str(e))

    async def compose_all_async(self, submissions_dir: Path, instructions_path: Optional[Path] = None,
                                actions: Sequence[str] = (),
                                feedback_filename: str = "feedback.yaml") -> List[BatchCompositionResult]:
        """
        Compose feedback for all submissions with concurrency control.

        Args:
            submissions_dir: Parent directory containing all submissions
            instructions_path: Instructions shared by submissions without their own
            actions: Quick actions applied to every draft, in order
            feedback_filename: Name of the draft file written in each submission directory

        Returns:
            List of BatchCompositionResult objects sorted by directory name
        """
        shared = load_instructions(instructions_path)
        submission_dirs = self.find_submission_directories(submissions_dir)
        if not submission_dirs:
            LOG.error("No submission directories with %s found in %s", FINDINGS_FILENAME, submissions_dir)
            return []
        LOG.info("Found %d submission directories", len(submission_dirs))

        semaphore = asyncio.Semaphore(self.max_concurrent)

        async def compose_with_semaphore(submission_dir: Path) -> BatchCompositionResult:
            async with semaphore:
                return await self._compose_single_async(submission_dir, shared, actions, feedback_filename)

        tasks = [compose_with_semaphore(d) for d in submission_dirs]
        results = []
        for coro in tqdm.as_completed(tasks, total=len(tasks), desc="Composing feedback"):
            result = await coro
            if not result.success:
                LOG.warning("Failed: %s - %s", result.submission_dir, result.error_message)
            results.append(result)

        results.sort(key=lambda r: r.submission_dir)
        return results

    def compose_all(self, submissions_dir: Path, instructions_path: Optional[Path] = None,
                    actions: Sequence[str] = (),
                    feedback_filename: str = "feedback.yaml") -> List[BatchCompositionResult]:
        """Synchronous wrapper for compose_all_async."""
        return asyncio.run(self.compose_all_async(submissions_dir, instructions_path, actions, feedback_filename))

    def save_summary(self, results: List[BatchCompositionResult], output_path: Path):
        """
        Save composition summary to YAML file.

        Args:
            results: List of composition results
            output_path: Path to save summary file
        """
        successful = [r for r in results if r.success]
        scores = [r.fidelity_score for r in successful if r.fidelity_score is not None]
        grades: Dict[str, int] = {}
        for r in successful:
            grades[r.grade] = grades.get(r.grade, 0) + 1

        summary = {
            'composition_summary': {
                'timestamp': datetime.now().isoformat(),
                'teacher': self.profile.display_name,
                'total_submissions': len(results),
                'successful': len(successful),
                'failed': len(results) - len(successful),
                'average_fidelity': sum(scores) / len(scores) if scores else 0,
                'grades': grades,
            },
            'submissions': [r.to_dict() for r in results],
        }
        with open(output_path, 'w', encoding='utf-8') as f:
            yaml.dump(summary, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        LOG.info("Summary saved to %s", output_path)
