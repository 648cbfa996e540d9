"""Error types for the Discord pipeline tracker.

Every failure raised by the tracker derives from ``TrackerError`` and carries
a stable machine-readable ``code``. Entry points catch ``TrackerError`` and
turn it into a user-visible message plus a non-zero exit status.
"""

from typing import Optional


class TrackerError(Exception):
    """Base exception for all tracker failures."""

    code = 'TRACKER_ERROR'

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code

    def __str__(self) -> str:
        return self.message


class MissingEnvironmentVariableError(TrackerError):
    code = 'MISSING_ENV'

    def __init__(self, name: str):
        super().__init__(f"Missing environment variable: {name}")
        self.name = name


class MissingInputError(TrackerError):
    code = 'MISSING_INPUT'

    def __init__(self, detail: str):
        super().__init__(f"Missing required input: {detail}")
        self.detail = detail


class InvalidInputError(TrackerError):
    code = 'INVALID_INPUT'

    def __init__(self, detail: str):
        super().__init__(f"Invalid input: {detail}")
        self.detail = detail


class InvalidActionError(TrackerError):
    code = 'INVALID_ACTION'

    def __init__(self, action: str):
        super().__init__(f"Invalid action: {action}")
        self.action = action


class InvalidBotTokenError(TrackerError):
    code = 'INVALID_BOT_TOKEN'

    def __init__(self):
        super().__init__("Bot token is invalid")


class InvalidChannelIdError(TrackerError):
    code = 'INVALID_CHANNEL_ID'

    def __init__(self, channel_id: str):
        super().__init__(f"Channel ID is invalid: {channel_id}")
        self.channel_id = channel_id


class InvalidStatusError(TrackerError):
    code = 'INVALID_STATUS'

    def __init__(self, status: str):
        super().__init__(
            f"Invalid status: {status}. Must be one of: success, pending, failed"
        )
        self.status = status


class InvalidStepNumberError(TrackerError):
    code = 'INVALID_STEP_NUMBER'

    def __init__(self, step: int):
        super().__init__(f"Invalid step number: {step}. Must be greater than 0")
        self.step = step


class InvalidTotalStepsError(TrackerError):
    code = 'INVALID_TOTAL_STEPS'

    def __init__(self, total: int):
        super().__init__(f"Invalid total steps: {total}. Must be greater than 0")
        self.total = total


class StepNumberExceedsTotalError(TrackerError):
    code = 'STEP_EXCEEDS_TOTAL'

    def __init__(self, step: int, total: int):
        super().__init__(
            f"Step number ({step}) cannot be greater than total steps ({total})"
        )
        self.step = step
        self.total = total


class MessageIdNotFoundError(TrackerError):
    code = 'MESSAGE_ID_NOT_FOUND'

    def __init__(self):
        super().__init__("Message ID not found. Run init command first")


class TransportError(TrackerError):
    """Network failure or timeout talking to Discord."""

    code = 'TRANSPORT_ERROR'

    def __init__(self, detail: str):
        super().__init__(f"HTTP request failed: {detail}")


class SerializationError(TrackerError):
    """JSON could not be encoded or decoded."""

    code = 'JSON_ERROR'

    def __init__(self, detail: str):
        super().__init__(f"JSON serialization error: {detail}")


class StateError(TrackerError):
    """Exception raised for state file operations failures."""

    code = 'STATE_ERROR'


class DiscordApiError(TrackerError):
    """Discord answered with a non-2xx status."""

    code = 'DISCORD_API_ERROR'

    def __init__(
        self,
        status_code: int,
        message: str,
        discord_code: Optional[int] = None
    ):
        super().__init__(f"Discord API error: {status_code}: {message}")
        self.status_code = status_code
        self.api_message = message
        self.discord_code = discord_code


class RateLimitedError(DiscordApiError):
    code = 'RATE_LIMITED'

    def __init__(
        self,
        message: str,
        retry_after: Optional[float] = None,
        discord_code: Optional[int] = None
    ):
        super().__init__(429, message, discord_code)
        self.retry_after = retry_after
        if retry_after is not None:
            self.message = (
                f"Rate limited by Discord API. Retry after: {retry_after} seconds"
            )


class UnauthorizedError(DiscordApiError):
    code = 'UNAUTHORIZED'

    def __init__(self, message: str, discord_code: Optional[int] = None):
        super().__init__(401, message, discord_code)
        self.message = f"Unauthorized. Check bot token and permissions ({message})"


class ForbiddenError(DiscordApiError):
    code = 'FORBIDDEN'

    def __init__(self, message: str, discord_code: Optional[int] = None):
        super().__init__(403, message, discord_code)
        self.message = f"Forbidden. Bot lacks required permissions ({message})"


class MessageNotFoundError(DiscordApiError):
    code = 'MESSAGE_NOT_FOUND'

    def __init__(self, message: str, discord_code: Optional[int] = None):
        super().__init__(404, message, discord_code)
        self.message = f"Message not found. It may have been deleted ({message})"
