"""Embed builders for Discord pipeline notifications."""

from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from ..state.models import PipelineContext, Step, StepStatus, utcnow
from .models import Embed, EmbedField, EmbedFooter


COLOR_SUCCESS = 0x00FF00
COLOR_IN_PROGRESS = 0xFFFF00
COLOR_FAILURE = 0xFF0000

FOOTER_TIME_FORMAT = '%Y-%m-%d %H:%M:%S UTC'


def count_steps(steps: List[Step]) -> Tuple[int, int]:
    """Count (completed, failed) steps."""
    completed = sum(1 for step in steps if step.status == StepStatus.SUCCESS)
    failed = sum(1 for step in steps if step.status == StepStatus.FAILED)
    return completed, failed


def status_color(failed_steps: int, completed_steps: int, total_steps: int) -> int:
    """Get embed color for the overall pipeline status.

    A failure wins over everything else; green requires every step complete.
    """
    if failed_steps > 0:
        return COLOR_FAILURE
    if completed_steps == total_steps:
        return COLOR_SUCCESS
    return COLOR_IN_PROGRESS


def _overall_status(failed_steps: int, completed_steps: int, total_steps: int) -> Tuple[str, str]:
    if failed_steps > 0:
        return '❌', 'Failed'
    if completed_steps == total_steps:
        return '✅', 'Completed'
    return '🔄', 'In Progress'


def format_duration(duration: timedelta) -> str:
    """Format a pipeline duration as ``3m 7s`` or ``42s``.

    Hours are not rolled over, so 75 minutes renders as ``75m 0s``.
    """
    total_seconds = int(duration.total_seconds())
    minutes = total_seconds // 60
    seconds = total_seconds % 60

    if minutes > 0:
        return f'{minutes}m {seconds}s'
    return f'{seconds}s'


def _footer(label: str, now: datetime) -> EmbedFooter:
    return EmbedFooter(text=f'{label} at {now.strftime(FOOTER_TIME_FORMAT)}')


def build_init_embed(
    pr_number: str,
    pr_title: str,
    author: str,
    repository: str,
    branch: str,
    now: Optional[datetime] = None
) -> Embed:
    """Build the embed posted when a pipeline starts.

    Args:
        pr_number: Pull request number
        pr_title: Pull request title
        author: PR author username
        repository: Repository name (owner/repo)
        branch: Branch name
        now: Render time (defaults to current UTC time)

    Returns:
        Embed with Status and Progress fields
    """
    now = now or utcnow()

    return Embed(
        title=f'🚀 Pipeline Started - PR #{pr_number}',
        description=(
            f'**{pr_title}**\n\n'
            f'**Author:** {author}\n'
            f'**Repository:** {repository}\n'
            f'**Branch:** {branch}'
        ),
        color=COLOR_SUCCESS,
        fields=[
            EmbedField(name='Status', value='🔄 Initializing...'),
            EmbedField(name='Progress', value='0/0 steps completed'),
        ],
        footer=_footer('Started', now),
        timestamp=now,
    )


def build_step_update_embed(
    context: PipelineContext,
    steps: List[Step],
    current_step: int,
    total_steps: int,
    now: Optional[datetime] = None
) -> Embed:
    """Build the embed shown while steps are running.

    Progress is measured against the caller's ``total_steps``, which may be
    larger than the number of steps reported so far.

    Args:
        context: Pipeline PR metadata
        steps: Steps reported so far
        current_step: Step number of this update
        total_steps: Declared number of steps in the pipeline
        now: Render time (defaults to current UTC time)

    Returns:
        Embed with Status, Progress and Current Step fields
    """
    now = now or utcnow()
    completed, failed = count_steps(steps)

    percentage = completed * 100 // total_steps if total_steps > 0 else 0
    emoji, text = _overall_status(failed, completed, total_steps)

    description = f'**{context.pr_title}**'
    if steps:
        lines = [step.format_for_embed() for step in sorted(steps, key=lambda s: s.number)]
        description += '\n\n' + '\n'.join(lines)

    return Embed(
        title=f'{emoji} Pipeline Update - PR #{context.pr_number}',
        description=description,
        color=status_color(failed, completed, total_steps),
        fields=[
            EmbedField(name='Status', value=f'{emoji} {text}'),
            EmbedField(
                name='Progress',
                value=f'{completed}/{total_steps} steps completed ({percentage}%)'
            ),
            EmbedField(name='Current Step', value=f'Step {current_step} of {total_steps}'),
        ],
        footer=_footer('Updated', now),
        timestamp=now,
    )


def build_completion_embed(
    context: PipelineContext,
    steps: List[Step],
    total_steps: int,
    now: Optional[datetime] = None
) -> Embed:
    """Build the final summary embed.

    Args:
        context: Pipeline PR metadata (start time drives the duration)
        steps: All reported steps
        total_steps: Number of steps to report against
        now: Render time (defaults to current UTC time)

    Returns:
        Embed with Status and Duration fields
    """
    now = now or utcnow()
    completed, failed = count_steps(steps)

    if failed > 0:
        emoji, text, color = '❌', 'Failed', COLOR_FAILURE
    else:
        emoji, text, color = '✅', 'Completed', COLOR_SUCCESS

    duration = format_duration(now - context.started_at)

    return Embed(
        title=f'{emoji} Pipeline {text} - PR #{context.pr_number}',
        description=(
            f'**{context.pr_title}**\n\n'
            f'**Duration:** {duration}\n'
            f'**Steps:** {completed}/{total_steps} completed'
        ),
        color=color,
        fields=[
            EmbedField(name='Status', value=f'{emoji} {text}'),
            EmbedField(name='Duration', value=duration),
        ],
        footer=_footer('Completed', now),
        timestamp=now,
    )
