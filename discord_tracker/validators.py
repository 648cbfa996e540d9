"""Input validation for the Discord pipeline tracker.

Pure checks for credentials and step numbers, plus pydantic models for the
arguments each CLI action accepts.
"""

import json
import logging
import re
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import (
    InvalidBotTokenError,
    InvalidChannelIdError,
    InvalidInputError,
    InvalidStepNumberError,
    InvalidTotalStepsError,
    MissingInputError,
    StepNumberExceedsTotalError,
    TrackerError,
)


logger = logging.getLogger("discord_tracker.validators")

# Mantissa and exponent only: no whitespace, underscores, inf or nan.
SCIENTIFIC_ID_PATTERN = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)[eE][+-]?[0-9]+")


def validate_token(token: str) -> None:
    """Validate Discord bot token.

    Raises:
        InvalidBotTokenError: If the token is empty
    """
    if not token:
        raise InvalidBotTokenError()


def validate_channel_id(channel_id: str) -> None:
    """Validate Discord channel ID.

    Accepts plain decimal snowflakes and scientific notation such as
    ``1.39589530256487E+18`` (what spreadsheet-style CI inputs produce).

    Raises:
        InvalidChannelIdError: If the ID is empty or malformed
    """
    if not channel_id:
        raise InvalidChannelIdError(channel_id)

    if 'E' in channel_id or 'e' in channel_id:
        if not SCIENTIFIC_ID_PATTERN.fullmatch(channel_id):
            raise InvalidChannelIdError(channel_id)
        return

    if not (channel_id.isascii() and channel_id.isdigit()):
        raise InvalidChannelIdError(channel_id)


def validate_step_number(step: int, total_steps: int) -> None:
    """Validate a step number against the pipeline's total.

    Raises:
        InvalidStepNumberError: If step is below 1
        InvalidTotalStepsError: If total_steps is below 1
        StepNumberExceedsTotalError: If step is greater than total_steps
    """
    if step < 1:
        raise InvalidStepNumberError(step)
    if total_steps < 1:
        raise InvalidTotalStepsError(total_steps)
    if step > total_steps:
        raise StepNumberExceedsTotalError(step, total_steps)


def parse_additional_info(raw: str) -> List[Tuple[str, str]]:
    """Parse step metadata given on the command line.

    Two shapes are understood:
    - ``key,value,key,value`` - consumed pairwise, a dangling key is dropped
    - a JSON object such as ``{"coverage": "91%"}``

    Args:
        raw: Raw argument text

    Returns:
        Ordered list of (key, value) pairs
    """
    if not raw or not raw.strip():
        return []

    text = raw.strip()
    if text.startswith('{'):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning(f"Failed to parse additional info JSON: {e}")
            return []
        if not isinstance(parsed, dict):
            return []
        return [(str(key), str(value)) for key, value in parsed.items()]

    items = [item.strip() for item in text.split(',')]
    return [
        (items[i], items[i + 1])
        for i in range(0, len(items) - 1, 2)
    ]


def _require_text(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("must not be empty")
    return value


class InitRequest(BaseModel):
    """Arguments of the ``init`` action."""
    pr_number: str = Field(..., description="Pull request number")
    pr_title: str = Field(..., description="Pull request title")
    author: str = Field(..., description="PR author username")
    repository: str = Field(..., description="Repository, e.g. owner/repo")
    branch: str = Field(..., description="Branch name")

    @field_validator('pr_number', 'pr_title', 'author', 'repository', 'branch')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        return _require_text(v)


class StepRequest(BaseModel):
    """Arguments of the ``step`` action."""
    step_number: int = Field(..., description="Current step number (1-based)")
    total_steps: int = Field(..., description="Total number of steps")
    step_name: str = Field(..., description="Name of the current step")
    status: str = Field(..., description="success, pending or failed")
    additional_info: List[Tuple[str, str]] = Field(default_factory=list)

    @field_validator('step_name', 'status')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        return _require_text(v)


class FailRequest(BaseModel):
    """Arguments of the ``fail`` action."""
    step_name: str = Field(..., description="Name of the step that failed")
    error_message: str = Field(..., description="Error message")

    @field_validator('step_name', 'error_message')
    @classmethod
    def validate_not_empty(cls, v: str) -> str:
        return _require_text(v)


def _is_missing(detail: Dict[str, Any]) -> bool:
    value = detail.get('input')
    return detail['type'] == 'missing' or (isinstance(value, str) and not value.strip())


def describe_validation_error(action: str, error: ValidationError) -> TrackerError:
    """Convert a pydantic error into a tracker input error.

    Blank or absent fields are reported as missing; fields that are present
    but malformed (e.g. a non-numeric step number) are reported as invalid.

    Args:
        action: Action whose arguments failed validation
        error: Error raised by the request model

    Returns:
        MissingInputError or InvalidInputError naming the offending fields
    """
    missing = set()
    invalid = set()
    for detail in error.errors():
        name = '.'.join(str(part) for part in detail['loc'])
        (missing if _is_missing(detail) else invalid).add(name)

    if missing:
        return MissingInputError(f"{', '.join(sorted(missing))} for {action} action")
    return InvalidInputError(f"{', '.join(sorted(invalid))} for {action} action")
