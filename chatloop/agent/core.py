"""
Agent Core
==========

The conversation agent owns the transcript and drives the model.

Agent Loop:
    chat(text)
         │
         ▼
    Append UserTurn
         │
         ▼
    Send transcript + system prompt + tool specs ◄──────┐
         │                                              │
         ▼                                              │
    Append AssistantTurn, emit message text             │
         │                                              │
         ▼                                              │
    ┌── Any function calls? ──┐                         │
    │                         │                         │
    Yes                       No                        │
    │                         │                         │
    ▼                         ▼                         │
    Execute tools          Return                       │
    Append ToolResultTurns ─────────────────────────────┘

The system prompt and the tool list are fetched again for every round
trip, so both can change while a conversation is running.

Concurrency:
    ``chat`` must not be called again on the same agent before the
    previous call has returned; callers serialize (see ``chatloop.app``).

Errors:
    Tool problems (unknown name, bad arguments, a raising handler) are
    reported back to the model as failed results. Errors from the model
    call itself propagate out of ``chat``.
"""

from typing import Callable

from chatloop.agent.model import ModelClient
from chatloop.agent.tools_executor import ToolExecutor
from chatloop.agent.transcript import (
    AssistantTurn,
    FunctionCallItem,
    MessageItem,
    OutputItem,
    Turn,
    UserTurn,
)
from chatloop.tools import Tool
from chatloop.utils.logger import Logger

logger = Logger("Agent")

SystemPromptSupplier = Callable[[], str]
ToolSupplier = Callable[[], list[Tool]]
MessageListener = Callable[[str], None]


class ConversationAgent:
    """
    Drives one linear conversation with the model.

    Example:
        agent = ConversationAgent(
            model=ResponsesModel.from_config(config.openai),
            get_system_prompt=lambda: "You are a helpful AI assistant.",
            get_tools=registry.list_tools,
            message_listener=channel.add_agent_message,
        )

        await agent.chat("please show me the latest blog post title")
    """

    def __init__(
        self,
        model: ModelClient,
        get_system_prompt: SystemPromptSupplier,
        get_tools: ToolSupplier,
        message_listener: MessageListener,
        max_round_trips: int | None = None
    ):
        """
        Initialize the agent.

        Args:
            model: Remote model client
            get_system_prompt: Returns the system prompt; called every round trip
            get_tools: Returns the available tools; called every round trip
            message_listener: Receives each assistant text block as it arrives
            max_round_trips: Optional cap on model calls per ``chat``
        """
        self.model = model
        self.get_system_prompt = get_system_prompt
        self.get_tools = get_tools
        self.message_listener = message_listener
        self.max_round_trips = max_round_trips

        self.tool_executor = ToolExecutor()
        self._transcript: list[Turn] = []

    def get_transcript(self) -> tuple[Turn, ...]:
        """Read-only snapshot of every turn so far."""
        return tuple(self._transcript)

    async def chat(self, message: str) -> None:
        """
        Send a user message and run the model until it stops calling tools.

        Assistant text is delivered through the message listener, in the
        order the model produced it.
        """
        logger.info(f"User message: {message[:50]}")
        self._transcript.append(UserTurn(text=message))
        await self._drive()

    async def _drive(self) -> None:
        round_trips = 0

        while True:
            round_trips += 1
            items = await self._request()
            pending = self._handle_output(items)

            if not pending:
                logger.debug(f"Conversation settled after {round_trips} round trips")
                return

            results = await self.tool_executor.execute_all(pending, self.get_tools())
            self._transcript.extend(results)

            if self.max_round_trips is not None and round_trips >= self.max_round_trips:
                logger.warning(
                    f"Reached max round trips ({self.max_round_trips}); "
                    f"{len(results)} tool results not yet seen by the model"
                )
                return

    async def _request(self) -> list[OutputItem]:
        """One round trip: send everything, record the response."""
        specs = [tool.spec for tool in self.get_tools()]
        items = await self.model.send(self.get_transcript(), self.get_system_prompt(), specs)

        self._transcript.append(AssistantTurn(items=tuple(items)))
        logger.debug(f"Model returned {len(items)} output items")
        return items

    def _handle_output(self, items: list[OutputItem]) -> list[FunctionCallItem]:
        """Emit message text and collect function calls, in order."""
        pending: list[FunctionCallItem] = []

        for item in items:
            if isinstance(item, MessageItem):
                for text in item.texts:
                    self.message_listener(text)
            elif isinstance(item, FunctionCallItem):
                pending.append(item)
            else:
                # Reasoning and other item kinds are kept in the transcript only
                logger.debug(f"Ignoring output item of type: {item.type}")

        return pending
