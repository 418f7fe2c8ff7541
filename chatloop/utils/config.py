"""
Configuration Management
========================

Centralized, typed configuration for ChatLoop. Every environment variable
is read and validated here so that a missing key fails at startup rather
than halfway through a conversation.

Usage:
    from chatloop.utils.config import get_config

    config = get_config()
    print(config.openai.model)
    print(config.channel.kind)

Environment variables (see .env.example):
    OPENAI_API_KEY         required
    OPENAI_MODEL           default gpt-4.1
    OPENAI_VERBOSITY       optional (low / medium / high)
    SYSTEM_PROMPT          base system prompt
    CHAT_CHANNEL           http (default) or slack
    CHAT_HOST, CHAT_PORT   HTTP channel bind address
    SLACK_BOT_TOKEN, SLACK_APP_TOKEN, SLACK_SIGNING_SECRET
                           required when CHAT_CHANNEL=slack
    SCHEDULE               e.g. "hourly:15, daily:9:30, hours:3, minute"
    SCHEDULE_PROMPT        message sent to the agent when a schedule fires
    ENABLE_BUILTIN_TOOLS   default true
    MAX_ROUND_TRIPS        0 (default) means unlimited
    LOG_LEVEL              default info
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

CHANNEL_KINDS = ("http", "slack")

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant."
DEFAULT_SCHEDULE_PROMPT = (
    "This is a scheduled check-in. If there is anything worth telling the "
    "user right now, say it briefly; otherwise reply with a short status."
)


def _required(name: str) -> str:
    """
    Get a required environment variable.

    Raises:
        ValueError: If the variable is not set
    """
    value = os.getenv(name)
    if not value:
        raise ValueError(
            f"Missing required environment variable: {name}\n"
            f"Please ensure {name} is set in your .env file."
        )
    return value


def _optional(name: str, default: str) -> str:
    return os.getenv(name, default)


def _optional_int(name: str, default: int) -> int:
    """
    Get an optional integer environment variable.

    Raises:
        ValueError: If the variable is set but is not an integer
    """
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


def _optional_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if not value:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# ==============================================================================
# Configuration Dataclasses
# ==============================================================================

@dataclass(frozen=True)
class OpenAIConfig:
    """OpenAI Responses API configuration."""
    api_key: str            # sk-... API key
    model: str              # Model used for every round trip
    verbosity: str | None   # Optional text verbosity hint


@dataclass(frozen=True)
class ChannelConfig:
    """Which delivery channel to run and where the HTTP one listens."""
    kind: str               # "http" or "slack"
    host: str
    port: int


@dataclass(frozen=True)
class SlackConfig:
    """Slack API configuration (only populated for the Slack channel)."""
    bot_token: str | None       # xoxb-... token for bot operations
    app_token: str | None       # xapp-... token for Socket Mode
    signing_secret: str | None


@dataclass(frozen=True)
class ScheduleConfig:
    """Scheduled prompts; an empty ``intervals`` string disables them."""
    intervals: str
    prompt: str

    @property
    def enabled(self) -> bool:
        return bool(self.intervals.strip())


@dataclass(frozen=True)
class AgentConfig:
    """Conversation agent behavior."""
    system_prompt: str
    enable_builtin_tools: bool
    max_round_trips: int | None     # None means no limit


@dataclass(frozen=True)
class Config:
    """
    Root configuration object.

    Access via:
        config = get_config()
        config.openai.api_key
        config.schedule.intervals
    """
    openai: OpenAIConfig
    agent: AgentConfig
    channel: ChannelConfig
    slack: SlackConfig
    schedule: ScheduleConfig
    log_level: str


def load_config() -> Config:
    """
    Load and validate all configuration from the environment.

    Loads ``.env`` first, then reads and validates every variable. The
    schedule string is parsed here as well so that a malformed interval
    aborts startup before any timer exists.

    Raises:
        ValueError: If required configuration is missing or malformed
    """
    load_dotenv()

    channel_kind = _optional("CHAT_CHANNEL", "http").strip().lower()
    if channel_kind not in CHANNEL_KINDS:
        raise ValueError(
            f"CHAT_CHANNEL must be one of {', '.join(CHANNEL_KINDS)}, got {channel_kind!r}"
        )

    if channel_kind == "slack":
        slack = SlackConfig(
            bot_token=_required("SLACK_BOT_TOKEN"),
            app_token=_required("SLACK_APP_TOKEN"),
            signing_secret=_required("SLACK_SIGNING_SECRET"),
        )
    else:
        slack = SlackConfig(
            bot_token=os.getenv("SLACK_BOT_TOKEN"),
            app_token=os.getenv("SLACK_APP_TOKEN"),
            signing_secret=os.getenv("SLACK_SIGNING_SECRET"),
        )

    schedule = ScheduleConfig(
        intervals=_optional("SCHEDULE", ""),
        prompt=_optional("SCHEDULE_PROMPT", DEFAULT_SCHEDULE_PROMPT),
    )
    if schedule.enabled:
        from chatloop.scheduler.intervals import parse_schedule
        parse_schedule(schedule.intervals)

    max_round_trips = _optional_int("MAX_ROUND_TRIPS", 0)

    return Config(
        openai=OpenAIConfig(
            api_key=_required("OPENAI_API_KEY"),
            model=_optional("OPENAI_MODEL", "gpt-4.1"),
            verbosity=os.getenv("OPENAI_VERBOSITY") or None,
        ),
        agent=AgentConfig(
            system_prompt=_optional("SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT),
            enable_builtin_tools=_optional_bool("ENABLE_BUILTIN_TOOLS", True),
            max_round_trips=max_round_trips if max_round_trips > 0 else None,
        ),
        channel=ChannelConfig(
            kind=channel_kind,
            host=_optional("CHAT_HOST", "0.0.0.0"),
            port=_optional_int("CHAT_PORT", 3000),
        ),
        slack=slack,
        schedule=schedule,
        log_level=_optional("LOG_LEVEL", "info"),
    )


# ==============================================================================
# Singleton
# ==============================================================================

_config_instance: Config | None = None


def get_config() -> Config:
    """
    Get the process-wide configuration, loading it on first access.
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = load_config()
    return _config_instance


def reset_config() -> None:
    """Forget the cached configuration so the next access reloads it."""
    global _config_instance
    _config_instance = None
