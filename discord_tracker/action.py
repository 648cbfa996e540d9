"""GitHub Action entry point for discord-tracker.

The action runner passes every input positionally (empty strings for unused
inputs) and reads results from the file named by ``GITHUB_OUTPUT``.
"""

import logging
import os
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from .config import BOT_TOKEN_ENV, CHANNEL_ID_ENV, OUTPUT_PATH_ENV, Config, require_env
from .errors import InvalidActionError, MissingEnvironmentVariableError, TrackerError
from .tracker import PipelineTracker
from .utils.logging_config import log_with_fields, setup_logging
from .validators import (
    FailRequest,
    InitRequest,
    StepRequest,
    describe_validation_error,
    parse_additional_info,
)

logger = logging.getLogger("discord_tracker.action")

ERROR_LOG_FILE = "error.log"


def write_outputs(output_path: Path, error: Optional[str] = None) -> None:
    """Append ``key=value`` result lines to the action output file."""
    if error is None:
        lines = "success=true\n"
    else:
        lines = f"error={error}\nsuccess=false\n"

    with open(output_path, "a", encoding="utf-8") as f:
        f.write(lines)


def _abort(output_path: Path, message: str, code: str, action_name: str) -> NoReturn:
    """Record a failed run and exit non-zero."""
    log_with_fields(logger, "error", message, code=code, action=action_name)
    typer.echo(f"Error: {message}", err=True)
    write_outputs(output_path, message)
    raise typer.Exit(code=1)


def run_action(
    tracker: PipelineTracker,
    action: str,
    pr_number: str = "",
    pr_title: str = "",
    author: str = "",
    repository: str = "",
    branch: str = "",
    step_number: str = "",
    total_steps: str = "",
    step_name: str = "",
    status: str = "",
    additional_info: str = "",
    error_message: str = "",
) -> None:
    """Dispatch one action to the tracker.

    Raises:
        InvalidActionError: If action is not init, step, complete or fail
        MissingInputError: If the action's required inputs are missing
        InvalidInputError: If an input is present but malformed
        TrackerError: If the tracker operation fails
    """
    if action == "init":
        try:
            request = InitRequest(
                pr_number=pr_number,
                pr_title=pr_title,
                author=author,
                repository=repository,
                branch=branch,
            )
        except ValidationError as e:
            raise describe_validation_error(action, e)
        logger.info(f"Initializing pipeline tracker for PR #{request.pr_number}")
        tracker.init_pipeline(
            request.pr_number,
            request.pr_title,
            request.author,
            request.repository,
            request.branch,
        )

    elif action == "step":
        try:
            request = StepRequest(
                step_number=step_number,
                total_steps=total_steps,
                step_name=step_name,
                status=status,
                additional_info=parse_additional_info(additional_info),
            )
        except ValidationError as e:
            raise describe_validation_error(action, e)
        logger.info(f"Updating step {request.step_number}: {request.step_name}")
        tracker.update_step(
            request.step_number,
            request.total_steps,
            request.step_name,
            request.status,
            request.additional_info,
        )

    elif action == "complete":
        logger.info("Completing pipeline")
        tracker.complete_pipeline()

    elif action == "fail":
        try:
            request = FailRequest(step_name=step_name, error_message=error_message)
        except ValidationError as e:
            raise describe_validation_error(action, e)
        tracker.fail_pipeline(request.step_name, request.error_message)

    else:
        raise InvalidActionError(action)


def action(
    action_name: str = typer.Argument(..., metavar="ACTION", help="init, step, complete or fail"),
    pr_number: str = typer.Argument(""),
    pr_title: str = typer.Argument(""),
    author: str = typer.Argument(""),
    repository: str = typer.Argument(""),
    branch: str = typer.Argument(""),
    step_number: str = typer.Argument(""),
    total_steps: str = typer.Argument(""),
    step_name: str = typer.Argument(""),
    status: str = typer.Argument(""),
    additional_info: str = typer.Argument(""),
    error_message: str = typer.Argument(""),
    bot_token: str = typer.Argument("", help="Overrides DISCORD_BOT_TOKEN"),
    channel_id: str = typer.Argument("", help="Overrides DISCORD_CHANNEL_ID"),
) -> None:
    """Run one pipeline tracker action inside a GitHub workflow."""
    output_env = os.environ.get(OUTPUT_PATH_ENV)
    output_path = Path(output_env) if output_env else Path.cwd() / ERROR_LOG_FILE

    try:
        settings = Config.from_env()
    except TrackerError as e:
        setup_logging()
        _abort(output_path, f"Action failed: {e}", e.code, action_name)

    setup_logging(level=settings.logging.level, fmt=settings.logging.format)
    logger.info("Starting Discord Tracker GitHub Action")

    if not output_env:
        _abort(
            output_path,
            f"Missing environment variable: {OUTPUT_PATH_ENV}",
            MissingEnvironmentVariableError.code,
            action_name,
        )

    try:
        if not bot_token:
            require_env(BOT_TOKEN_ENV)
        if not channel_id:
            require_env(CHANNEL_ID_ENV)
        tracker = PipelineTracker.from_config(
            settings,
            bot_token=bot_token or None,
            channel_id=channel_id or None,
        )
        run_action(
            tracker,
            action_name,
            pr_number=pr_number,
            pr_title=pr_title,
            author=author,
            repository=repository,
            branch=branch,
            step_number=step_number,
            total_steps=total_steps,
            step_name=step_name,
            status=status,
            additional_info=additional_info,
            error_message=error_message,
        )
    except TrackerError as e:
        _abort(output_path, f"Action failed: {e}", e.code, action_name)
    except Exception as e:
        logger.exception("Unexpected error while running action")
        _abort(output_path, f"Action failed: {e}", "UNEXPECTED_ERROR", action_name)

    logger.info("Action completed successfully")
    write_outputs(output_path)


app = typer.Typer(name="discord-tracker-action", add_completion=False)
app.command()(action)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
