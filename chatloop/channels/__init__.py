"""
Delivery Channels
=================

A delivery channel carries plain text between the user and the agent:

- inbound: user text is handed to ``on_user_message`` (an async callable)
- outbound: the agent's text is queued with ``add_agent_message`` and
  leaves the queue either when a client polls (``drain``, HTTP) or when
  the channel pushes it (``flush``, Slack)

Implementations:
- HttpChatChannel: FastAPI app, POST /chat in, GET /chat out
- SlackChannel: Slack Bolt in Socket Mode
"""

from typing import Awaitable, Callable

from chatloop.utils.logger import Logger

logger = Logger("Channel")

UserMessageHandler = Callable[[str], Awaitable[None]]


class DeliveryChannel:
    """
    Base class holding the inbound handler and the outbound queue.

    Subclasses implement ``start``/``stop`` and, when they push messages
    instead of being polled, ``flush``.
    """

    name = "channel"

    def __init__(self, on_user_message: UserMessageHandler | None = None):
        self.on_user_message = on_user_message
        self._outbound: list[str] = []

    def set_message_handler(self, handler: UserMessageHandler) -> None:
        self.on_user_message = handler

    def add_agent_message(self, message: str) -> None:
        """Queue assistant text for delivery. Used as the agent's listener."""
        self._outbound.append(message)
        logger.debug(f"[{self.name}] queued message ({len(message)} chars)")

    def pending(self) -> int:
        return len(self._outbound)

    def drain(self) -> list[str]:
        """Return every queued message and clear the queue."""
        messages, self._outbound = self._outbound, []
        return messages

    async def flush(self) -> None:
        """Push queued messages to the user. Polled channels leave them queued."""

    async def start(self) -> None:
        """Run the channel until ``stop`` is called."""
        raise NotImplementedError

    async def stop(self) -> None:
        """Stop a running channel."""
        raise NotImplementedError


__all__ = ["DeliveryChannel", "UserMessageHandler"]
