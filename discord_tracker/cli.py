"""Typer CLI entry point for discord-tracker."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from .config import Config
from .errors import TrackerError
from .tracker import PipelineTracker
from .utils.logging_config import log_with_fields, setup_logging
from .validators import (
    FailRequest,
    InitRequest,
    StepRequest,
    describe_validation_error,
    parse_additional_info,
)

logger = logging.getLogger("discord_tracker.cli")

app = typer.Typer(
    name="discord-tracker",
    help="Production Discord pipeline tracker for CI/CD workflows",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration YAML file",
        exists=True,
        dir_okay=False,
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR)",
    ),
) -> None:
    """Track CI pipeline progress in a single Discord message."""
    try:
        settings = Config.load(str(config) if config else None)
    except TrackerError as e:
        _fail(e)
    setup_logging(level=log_level or settings.logging.level, fmt=settings.logging.format)
    ctx.obj = settings


def _fail(error: TrackerError) -> None:
    log_with_fields(logger, "error", str(error), code=error.code)
    typer.echo(f"Error: {error}", err=True)
    raise typer.Exit(code=1)


def _tracker(ctx: typer.Context) -> PipelineTracker:
    settings: Config = ctx.obj
    settings.require_credentials()
    return PipelineTracker.from_config(settings)


@app.command()
def init(
    ctx: typer.Context,
    pr_number: str = typer.Option(..., help="Pull request number"),
    pr_title: str = typer.Option(..., help="Pull request title"),
    author: str = typer.Option(..., help="PR author username"),
    repository: str = typer.Option(..., help='Repository name (e.g., "owner/repo")'),
    branch: str = typer.Option(..., help="Branch name"),
) -> None:
    """Initialize a new pipeline tracker."""
    try:
        request = InitRequest(
            pr_number=pr_number,
            pr_title=pr_title,
            author=author,
            repository=repository,
            branch=branch,
        )
    except ValidationError as e:
        _fail(describe_validation_error("init", e))

    logger.info(f"Initializing pipeline tracker for PR #{request.pr_number}")
    try:
        _tracker(ctx).init_pipeline(
            request.pr_number,
            request.pr_title,
            request.author,
            request.repository,
            request.branch,
        )
    except TrackerError as e:
        _fail(e)
    logger.info("Pipeline tracker initialized successfully")


@app.command()
def step(
    ctx: typer.Context,
    step_number: int = typer.Option(..., help="Current step number (1-based)"),
    total_steps: int = typer.Option(..., help="Total number of steps"),
    step_name: str = typer.Option(..., help="Name of the current step"),
    status: str = typer.Option(..., help="Step status (success, pending, failed)"),
    additional_info: str = typer.Option(
        "",
        help="Additional information as comma-delimited key,value pairs",
    ),
) -> None:
    """Update step progress."""
    try:
        request = StepRequest(
            step_number=step_number,
            total_steps=total_steps,
            step_name=step_name,
            status=status,
            additional_info=parse_additional_info(additional_info),
        )
    except ValidationError as e:
        _fail(describe_validation_error("step", e))

    logger.info(f"Updating step {request.step_number}: {request.step_name}")
    try:
        _tracker(ctx).update_step(
            request.step_number,
            request.total_steps,
            request.step_name,
            request.status,
            request.additional_info,
        )
    except TrackerError as e:
        _fail(e)
    logger.info("Step updated successfully")


@app.command()
def complete(ctx: typer.Context) -> None:
    """Complete the pipeline."""
    logger.info("Completing pipeline")
    try:
        _tracker(ctx).complete_pipeline()
    except TrackerError as e:
        _fail(e)
    logger.info("Pipeline completed successfully")


@app.command()
def fail(
    ctx: typer.Context,
    step_name: str = typer.Option(..., help="Name of the step that failed"),
    error_message: str = typer.Option(..., help="Error message"),
) -> None:
    """Handle pipeline failure."""
    try:
        request = FailRequest(step_name=step_name, error_message=error_message)
    except ValidationError as e:
        _fail(describe_validation_error("fail", e))

    try:
        _tracker(ctx).fail_pipeline(request.step_name, request.error_message)
    except TrackerError as e:
        _fail(e)
    logger.info("Pipeline failure recorded")


if __name__ == "__main__":
    app()
