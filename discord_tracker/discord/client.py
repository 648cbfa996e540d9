"""Discord REST API client for pipeline messages.

Creates, edits and deletes messages in a single channel using a bot token.
Calls are made once; there is no retry or backoff.
"""

import logging
from typing import Optional, Dict, Any

import requests

from ..errors import (
    DiscordApiError,
    ForbiddenError,
    MessageNotFoundError,
    RateLimitedError,
    SerializationError,
    TransportError,
    UnauthorizedError,
)
from ..validators import validate_channel_id, validate_token
from .models import DiscordMessage


logger = logging.getLogger("discord_tracker.discord")

DEFAULT_API_BASE_URL = "https://discord.com/api/v10"
DEFAULT_TIMEOUT_SEC = 30


def _parse_retry_after(*candidates: Any) -> Optional[float]:
    """Return the first retry delay that parses as seconds, else None."""
    for value in candidates:
        if value is None:
            continue
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.debug(f"Ignoring unparseable retry_after value: {value!r}")
    return None


class DiscordClient:
    """Discord message client bound to one channel."""

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        session: Optional[requests.Session] = None
    ):
        """Initialize Discord client.

        Args:
            bot_token: Discord bot token
            channel_id: Target channel snowflake
            base_url: REST API base URL
            timeout: Per-request timeout in seconds
            session: Optional requests session (a new one is created if None)

        Raises:
            InvalidBotTokenError: If bot_token is empty
            InvalidChannelIdError: If channel_id is malformed
        """
        validate_token(bot_token)
        validate_channel_id(channel_id)

        self.bot_token = bot_token
        self.channel_id = channel_id
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout

        # Request session for connection pooling
        self._session = session or requests.Session()

    @property
    def messages_url(self) -> str:
        return f"{self.base_url}/channels/{self.channel_id}/messages"

    def _make_request(
        self,
        method: str,
        url: str,
        **kwargs
    ) -> requests.Response:
        """Make authenticated request to the Discord API.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional requests arguments

        Returns:
            Response object

        Raises:
            TransportError: If the request could not be completed
        """
        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bot {self.bot_token}"
        headers["Content-Type"] = "application/json"

        logger.debug(f"{method} {url}")

        try:
            return self._session.request(
                method=method,
                url=url,
                headers=headers,
                timeout=kwargs.pop("timeout", self.timeout),
                **kwargs
            )
        except requests.RequestException as e:
            raise TransportError(str(e))

    def _raise_for_error(self, response: requests.Response) -> None:
        """Translate a non-2xx response into a typed error."""
        if 200 <= response.status_code < 300:
            return

        body: Dict[str, Any] = {}
        try:
            parsed = response.json()
            if isinstance(parsed, dict):
                body = parsed
        except ValueError:
            pass

        message = body.get("message") or "Unknown error"
        discord_code = body.get("code")
        status = response.status_code

        logger.warning(f"Discord API returned {status}: {message}")

        if status == 429:
            raise RateLimitedError(
                message,
                retry_after=_parse_retry_after(
                    body.get("retry_after"), response.headers.get("Retry-After")
                ),
                discord_code=discord_code
            )
        if status == 401:
            raise UnauthorizedError(message, discord_code)
        if status == 403:
            raise ForbiddenError(message, discord_code)
        if status == 404:
            raise MessageNotFoundError(message, discord_code)
        raise DiscordApiError(status, message, discord_code)

    def send_message(self, message: DiscordMessage) -> str:
        """Post a new message to the channel.

        Args:
            message: Message body

        Returns:
            ID assigned to the new message

        Raises:
            DiscordApiError: If Discord rejects the request
            SerializationError: If the response body has no message ID
            TransportError: If the request could not be completed
        """
        response = self._make_request("POST", self.messages_url, json=message.to_dict())
        self._raise_for_error(response)

        try:
            message_id = str(response.json()["id"])
        except (ValueError, KeyError, TypeError) as e:
            raise SerializationError(f"Unexpected create message response: {e}")

        logger.info(f"Created message {message_id} in channel {self.channel_id}")
        return message_id

    def update_message(self, message_id: str, message: DiscordMessage) -> None:
        """Edit an existing message.

        Args:
            message_id: Message to edit
            message: Replacement body
        """
        response = self._make_request(
            "PATCH",
            f"{self.messages_url}/{message_id}",
            json=message.to_dict()
        )
        self._raise_for_error(response)
        logger.info(f"Updated message {message_id}")

    def delete_message(self, message_id: str) -> None:
        """Delete a message.

        Args:
            message_id: Message to delete
        """
        response = self._make_request("DELETE", f"{self.messages_url}/{message_id}")
        self._raise_for_error(response)
        logger.info(f"Deleted message {message_id}")
