#!/usr/bin/env python3
"""CLI for composing a feedback draft in a teacher's style."""

import logging
import sys
from pathlib import Path

import click
import yaml
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from persona_feedback.libs.config_loader import load_all_configs, get_config
from .composer import compose_feedback
from .errors import FeedbackError, NoOpError
from .fidelity import score_breakdown, with_score
from .grade_recommender import GradeThresholds, recommend_grade
from .labels import DEFAULT_LOCALE, available_locales, describe_profile, grade_label
from .loaders import load_findings, load_instructions, load_profile
from .quick_actions import QUICK_ACTIONS, apply_quick_action

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)

console = Console()

SEVERITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "green"}


def _findings_tables(store):
    issues = Table(title=f"Issues ({len(store.issues())})")
    issues.add_column("ID", style="dim")
    issues.add_column("Severity")
    issues.add_column("Title", style="cyan")
    issues.add_column("Suggested fix")
    for f in store.issues_by_severity():
        style = SEVERITY_STYLES[f.severity.value]
        issues.add_row(f.id, f"[{style}]{f.severity.value}[/{style}]", f.title, f.suggested_fix or "")

    strengths = Table(title=f"Strengths ({len(store.strengths())})")
    strengths.add_column("ID", style="dim")
    strengths.add_column("Title", style="green")
    strengths.add_column("Description")
    for f in store.strengths():
        strengths.add_row(f.id, f.title, f.description)
    return issues, strengths


def _profile_table(profile):
    table = Table(title="Teacher Profile", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for field, value in describe_profile(profile).items():
        table.add_row(field.replace("_", " ").capitalize(), value)
    return table


@click.command()
@click.option(
    '--findings',
    '-f',
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help='YAML file with the analyzer findings'
)
@click.option(
    '--profile',
    '-p',
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="YAML file with the teacher's style profile"
)
@click.option(
    '--instructions',
    '-i',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Assignment instructions (YAML, Markdown or plain text)'
)
@click.option(
    '--action',
    '-a',
    'actions',
    type=click.Choice(sorted(QUICK_ACTIONS)),
    multiple=True,
    help='Quick action to apply after composing; may be repeated'
)
@click.option(
    '--output',
    '-o',
    type=click.Path(path_type=Path),
    default=None,
    help='Save the final draft as YAML at this path'
)
@click.option(
    '--locale',
    '-l',
    type=click.Choice(available_locales()),
    default=None,
    help='Locale for grade labels (default: feedback.locale from config)'
)
@click.option(
    '--verbose',
    '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def main(findings, profile, instructions, actions, output, locale, verbose):
    """
    Compose a feedback draft from findings in a teacher's style.

    Shows the findings, the recommended grade and the teacher profile, then
    the draft with its personality match.

    Example:
        feedback-compose -f findings.yaml -p profile.yaml -i assignment.md -a suggest_next_steps
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        configs = load_all_configs()
    except (ValueError, TypeError) as e:
        LOG.warning(f"Using built-in defaults, failed to load configuration: {e}")
        configs = {}
    locale = locale or get_config("feedback.locale", configs, default=DEFAULT_LOCALE)
    thresholds = GradeThresholds.from_config(configs)

    try:
        store = load_findings(findings)
        style = load_profile(profile)
        task = load_instructions(instructions)
    except (OSError, ValueError) as e:
        console.print(f"[red]Failed to load inputs:[/red] {e}")
        sys.exit(1)

    console.print("\n[bold cyan]Personalized Feedback Composer[/bold cyan]")
    console.print("=" * 50)

    issues_table, strengths_table = _findings_tables(store)
    console.print(issues_table)
    console.print(strengths_table)

    recommendation = recommend_grade(store, thresholds)
    console.print(f"\n[yellow]Recommended grade:[/yellow] [bold]{grade_label(recommendation.grade, locale)}[/bold]")
    console.print(f"[dim]{recommendation.rationale}[/dim]")
    console.print(_profile_table(style))

    try:
        draft = with_score(compose_feedback(store, task, style, thresholds), style)
    except FeedbackError as e:
        console.print(f"[red]Could not compose feedback:[/red] {e}")
        sys.exit(1)

    for action in actions:
        try:
            draft = apply_quick_action(draft, action, store, style, thresholds)
            console.print(f"[green]Applied {action}[/green]")
        except NoOpError:
            console.print(f"[yellow]Skipped {action}: the draft would not change[/yellow]")

    console.print("\n[bold cyan]Feedback Draft:[/bold cyan]")
    console.print("=" * 50)
    console.print(Markdown(draft.text))

    breakdown = score_breakdown(draft, style)
    console.print(f"\n[bold]Personality match:[/bold] {draft.fidelity_score}%")
    console.print(
        f"[dim]tone {breakdown.tone:.0f}, language level {breakdown.language_level:.0f}, "
        f"sentence length {breakdown.sentence_length:.0f}, "
        f"salutation/signoff {breakdown.salutation_signoff:.0f}[/dim]"
    )

    if output:
        data = draft.to_yaml_dict()
        data['grade'] = {
            'label': grade_label(recommendation.grade, locale),
            'rationale': recommendation.rationale,
        }
        with open(output, 'w', encoding='utf-8') as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)
        console.print(f"\n[green]Draft saved to:[/green] {output}")


if __name__ == "__main__":
    main()
