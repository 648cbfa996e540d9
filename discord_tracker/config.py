"""Configuration management for the Discord pipeline tracker.

Loads configuration from environment variables and an optional YAML file.
All secrets come from environment variables only.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .discord.client import DEFAULT_API_BASE_URL, DEFAULT_TIMEOUT_SEC
from .errors import MissingEnvironmentVariableError, TrackerError
from .state.manager import STATE_FILE_NAME


BOT_TOKEN_ENV = "DISCORD_BOT_TOKEN"
CHANNEL_ID_ENV = "DISCORD_CHANNEL_ID"
OUTPUT_PATH_ENV = "GITHUB_OUTPUT"


def require_env(name: str) -> str:
    """Get a required environment variable.

    Returns:
        Variable value (may be empty if set to an empty string)

    Raises:
        MissingEnvironmentVariableError: If the variable is not set
    """
    value = os.environ.get(name)
    if value is None:
        raise MissingEnvironmentVariableError(name)
    return value


def parse_timeout(value: Any, source: str) -> float:
    """Parse a positive request timeout in seconds.

    Raises:
        TrackerError: With code CONFIG_ERROR if the value is not a positive number
    """
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise TrackerError(f"Invalid timeout in {source}: {value!r}", "CONFIG_ERROR")
    if timeout <= 0:
        raise TrackerError(f"Invalid timeout in {source}: {value!r}", "CONFIG_ERROR")
    return timeout


@dataclass
class DiscordConfig:
    """Discord integration configuration."""

    bot_token: str
    channel_id: str
    api_base_url: str = DEFAULT_API_BASE_URL
    timeout_sec: float = DEFAULT_TIMEOUT_SEC

    @classmethod
    def from_env(cls) -> "DiscordConfig":
        """Load Discord configuration from environment variables."""
        return cls(
            bot_token=os.environ.get(BOT_TOKEN_ENV, ""),
            channel_id=os.environ.get(CHANNEL_ID_ENV, ""),
            api_base_url=os.environ.get("DISCORD_API_BASE_URL", DEFAULT_API_BASE_URL),
            timeout_sec=parse_timeout(
                os.environ.get("DISCORD_TIMEOUT_SEC", DEFAULT_TIMEOUT_SEC),
                "DISCORD_TIMEOUT_SEC",
            ),
        )


@dataclass
class StateConfig:
    """Snapshot file configuration."""

    state_file: Path = field(default_factory=lambda: Path.cwd() / STATE_FILE_NAME)

    @classmethod
    def from_env(cls) -> "StateConfig":
        """Load state configuration from environment variables."""
        state_file = os.environ.get("DISCORD_TRACKER_STATE_FILE")
        if state_file:
            return cls(state_file=Path(state_file))
        return cls()


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    format: str = "text"

    @classmethod
    def from_env(cls) -> "LoggingConfig":
        """Load logging configuration from environment variables."""
        return cls(
            level=os.environ.get("DISCORD_TRACKER_LOG_LEVEL", "INFO"),
            format=os.environ.get("DISCORD_TRACKER_LOG_FORMAT", "text"),
        )


@dataclass
class Config:
    """Main configuration container."""

    discord: DiscordConfig
    state: StateConfig
    logging: LoggingConfig

    @classmethod
    def from_env(cls) -> "Config":
        """Load all configuration from environment variables."""
        return cls(
            discord=DiscordConfig.from_env(),
            state=StateConfig.from_env(),
            logging=LoggingConfig.from_env(),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """Load configuration from YAML file, secrets stay in env vars.

        Raises:
            TrackerError: If the file is not a valid YAML mapping or holds a bad timeout
        """
        config_path = Path(path)

        if config_path.exists():
            try:
                with open(config_path, "r") as f:
                    yaml_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise TrackerError(f"Invalid configuration file {path}: {e}", "CONFIG_ERROR")
        else:
            yaml_config = {}

        if not isinstance(yaml_config, dict):
            raise TrackerError(
                f"Invalid configuration file {path}: expected a mapping", "CONFIG_ERROR"
            )

        # Start with env-based config
        config = cls.from_env()

        discord_section = yaml_config.get("discord") or {}
        config.discord.api_base_url = discord_section.get(
            "api_base_url", config.discord.api_base_url
        )
        if "timeout_sec" in discord_section:
            config.discord.timeout_sec = parse_timeout(
                discord_section["timeout_sec"], f"{path}: discord.timeout_sec"
            )

        state_section = yaml_config.get("state") or {}
        if state_section.get("state_file"):
            config.state.state_file = Path(state_section["state_file"])

        logging_section = yaml_config.get("logging") or {}
        config.logging.level = logging_section.get("level", config.logging.level)
        config.logging.format = logging_section.get("format", config.logging.format)

        return config

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load from YAML when a path is given, otherwise from env only."""
        return cls.from_yaml(path) if path else cls.from_env()

    def require_credentials(self) -> None:
        """Check the Discord credentials are present in the environment.

        Raises:
            MissingEnvironmentVariableError: If a credential variable is unset
        """
        require_env(BOT_TOKEN_ENV)
        require_env(CHANNEL_ID_ENV)

