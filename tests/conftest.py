"""Shared test fixtures for the ChatLoop test suite."""

from __future__ import annotations

import os

import pytest

from chatloop.agent.transcript import FunctionCallItem, MessageItem
from chatloop.utils.config import (
    AgentConfig,
    ChannelConfig,
    Config,
    OpenAIConfig,
    ScheduleConfig,
    SlackConfig,
)


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts."""
    os.environ.setdefault("OPENAI_API_KEY", "test-openai-key-123")


class ScriptedModel:
    """Model client that replays canned responses and records every call."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    async def send(self, transcript, system_prompt, tools):
        self.calls.append({
            "transcript": list(transcript),
            "system_prompt": system_prompt,
            "tools": list(tools),
        })
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return list(response)


@pytest.fixture
def make_model():
    """Factory: ``make_model([items_for_call_1, items_for_call_2, ...])``."""
    return ScriptedModel


@pytest.fixture
def text():
    """Factory for a message output item."""

    def _make(*texts: str, id: str | None = None) -> MessageItem:
        return MessageItem(texts=tuple(texts), id=id)

    return _make


@pytest.fixture
def call():
    """Factory for a function_call output item."""

    def _make(call_id: str, name: str, arguments: str = "{}") -> FunctionCallItem:
        return FunctionCallItem(call_id=call_id, name=name, arguments=arguments)

    return _make


@pytest.fixture
def make_config():
    """Factory for a Config with test defaults; override sections by keyword."""

    def _make(**overrides) -> Config:
        values = {
            "openai": OpenAIConfig(api_key="test-openai-key-123", model="gpt-4.1", verbosity=None),
            "agent": AgentConfig(
                system_prompt="You are a test assistant.",
                enable_builtin_tools=True,
                max_round_trips=None,
            ),
            "channel": ChannelConfig(kind="http", host="127.0.0.1", port=3000),
            "slack": SlackConfig(bot_token=None, app_token=None, signing_secret=None),
            "schedule": ScheduleConfig(intervals="", prompt="Scheduled check-in."),
            "log_level": "info",
        }
        values.update(overrides)
        return Config(**values)

    return _make
