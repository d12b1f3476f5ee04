#!/usr/bin/env python3
"""Command-line interface for composing feedback for many submissions."""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from persona_feedback.libs.config_loader import load_all_configs
from .batch_composer import BatchComposer
from .labels import available_locales
from .loaders import load_profile
from .quick_actions import QUICK_ACTIONS

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)


def main(argv=None):
    """Main entry point for feedback-batch command."""
    parser = argparse.ArgumentParser(
        description="Compose feedback drafts in a teacher's style for every submission with findings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Compose feedback for every submission directory containing findings.yaml
  feedback-batch --submissions-dir hw/submissions/ --profile profiles/anna.yaml

  # Share one assignment text and add next steps to every draft
  feedback-batch -s hw/submissions/ -p profiles/anna.yaml -i assignment.md -a suggest_next_steps

  # Swedish grade labels and a custom summary location
  feedback-batch -s hw/submissions/ -p profiles/anna.yaml --locale sv --summary summary.yaml
        """
    )
    parser.add_argument(
        '--submissions-dir', '-s',
        type=Path,
        required=True,
        help='Directory containing one directory per submission'
    )
    parser.add_argument(
        '--profile', '-p',
        type=Path,
        required=True,
        help="Path to the teacher's style profile YAML"
    )
    parser.add_argument(
        '--instructions', '-i',
        type=Path,
        default=None,
        help='Assignment instructions used when a submission has none of its own'
    )
    parser.add_argument(
        '--action', '-a',
        dest='actions',
        action='append',
        choices=sorted(QUICK_ACTIONS),
        default=[],
        help='Quick action applied to every draft; may be repeated'
    )
    parser.add_argument(
        '--feedback-file', '-f',
        type=str,
        default='feedback.yaml',
        help='Draft filename to create in each submission directory (default: feedback.yaml)'
    )
    parser.add_argument(
        '--summary', '-o',
        type=Path,
        default=None,
        help='Path to save summary YAML file (default: feedback_summary_TIMESTAMP.yaml in submissions dir)'
    )
    parser.add_argument(
        '--max-threads', '-t',
        type=int,
        default=None,
        help='Maximum number of concurrent compositions (overrides config value)'
    )
    parser.add_argument(
        '--locale', '-l',
        choices=available_locales(),
        default=None,
        help='Locale for grade labels (overrides config value)'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.submissions_dir.is_dir():
        LOG.error(f"Submissions directory does not exist: {args.submissions_dir}")
        sys.exit(1)

    try:
        config = load_all_configs()
    except Exception as e:
        LOG.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    try:
        profile = load_profile(args.profile)
    except (OSError, ValueError) as e:
        LOG.error(f"Failed to load style profile: {e}")
        sys.exit(1)

    composer = BatchComposer(config, profile, max_concurrent=args.max_threads, locale=args.locale)

    LOG.info(f"Starting batch composition of submissions in {args.submissions_dir}")
    try:
        results = composer.compose_all(
            submissions_dir=args.submissions_dir,
            instructions_path=args.instructions,
            actions=args.actions,
            feedback_filename=args.feedback_file,
        )
    except Exception as e:
        LOG.error(f"Batch composition failed: {e}")
        sys.exit(1)

    if not results:
        LOG.error("No submissions were processed")
        sys.exit(1)

    if args.summary is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        summary_path = args.submissions_dir / f"feedback_summary_{timestamp}.yaml"
    else:
        summary_path = args.summary
    composer.save_summary(results, summary_path)

    successful = [r for r in results if r.success]
    failed = [r for r in results if not r.success]

    print(f"\n{'='*60}")
    print("Batch Composition Complete")
    print(f"{'='*60}")
    print(f"Total submissions: {len(results)}")
    print(f"Successfully composed: {len(successful)}")
    print(f"Failed: {len(failed)}")

    if successful:
        print("\nGrades and personality match:")
        for result in successful:
            print(f"  {result.submission_dir}: {result.grade} ({result.fidelity_score}%)")

    if failed:
        print("\nFailed submissions:")
        for result in failed:
            print(f"  {result.submission_dir}: {result.error_message}")

    print(f"\nDrafts saved in each submission directory as: {args.feedback_file}")
    print(f"Summary saved to: {summary_path}")

    if failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
