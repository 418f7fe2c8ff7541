"""
Model Client
============

The remote side of the conversation: one call sends the whole transcript,
the system prompt and the tool specs to the OpenAI Responses API and
returns the output items of the response.

The agent only depends on the ``ModelClient`` protocol, so tests (or a
different provider) can plug in anything with a matching ``send``.

Errors raised by the API client (network failures, rate limits, invalid
requests) are not caught here. They propagate out of ``send`` and out of
``ConversationAgent.chat``; retry policy is the caller's decision.
"""

from typing import TYPE_CHECKING, Any, Protocol, Sequence

from openai import AsyncOpenAI

from chatloop.agent.transcript import (
    AssistantTurn,
    FunctionCallItem,
    MessageItem,
    OutputItem,
    ToolResultTurn,
    Turn,
    UnknownItem,
    UserTurn,
)
from chatloop.tools.spec import ToolSpec
from chatloop.utils.logger import Logger

if TYPE_CHECKING:
    from chatloop.utils.config import OpenAIConfig

logger = Logger("Model")


class ModelClient(Protocol):
    """Anything that can turn a transcript into the next output items."""

    async def send(
        self,
        transcript: Sequence[Turn],
        system_prompt: str,
        tools: Sequence[ToolSpec]
    ) -> list[OutputItem]:
        ...


# ==============================================================================
# Transcript -> Responses API input
# ==============================================================================

def _output_item_to_input(item: OutputItem) -> dict[str, Any]:
    if isinstance(item, MessageItem):
        content = [{"type": "output_text", "text": text, "annotations": []} for text in item.texts]
        if item.id:
            return {
                "type": "message",
                "role": "assistant",
                "id": item.id,
                "status": "completed",
                "content": content,
            }
        return {"role": "assistant", "content": content}

    if isinstance(item, FunctionCallItem):
        data = {
            "type": "function_call",
            "call_id": item.call_id,
            "name": item.name,
            "arguments": item.arguments,
        }
        if item.id:
            data["id"] = item.id
        return data

    return dict(item.payload)


def transcript_to_input(transcript: Sequence[Turn]) -> list[dict[str, Any]]:
    """
    Convert transcript turns to the ``input`` list of ``responses.create``.

    Assistant turns expand to one input item per output item, so the
    API sees exactly what it produced.
    """
    items: list[dict[str, Any]] = []
    for turn in transcript:
        if isinstance(turn, UserTurn):
            items.append({
                "role": "user",
                "content": [{"type": "input_text", "text": turn.text}],
            })
        elif isinstance(turn, AssistantTurn):
            items.extend(_output_item_to_input(item) for item in turn.items)
        elif isinstance(turn, ToolResultTurn):
            items.append({
                "type": "function_call_output",
                "call_id": turn.call_id,
                "output": turn.output,
            })
        else:
            raise TypeError(f"Unsupported transcript turn: {turn!r}")
    return items


# ==============================================================================
# Responses API output -> transcript items
# ==============================================================================

def _message_texts(raw_item: Any) -> tuple[str, ...]:
    texts = []
    for content in getattr(raw_item, "content", None) or []:
        content_type = getattr(content, "type", None)
        if content_type == "output_text":
            texts.append(content.text)
        elif content_type == "refusal":
            texts.append(content.refusal)
    return tuple(texts)


def parse_output_item(raw_item: Any) -> OutputItem:
    """Convert one SDK output item into a transcript item."""
    item_type = getattr(raw_item, "type", None)

    if item_type == "message":
        return MessageItem(texts=_message_texts(raw_item), id=getattr(raw_item, "id", None))

    if item_type == "function_call":
        return FunctionCallItem(
            call_id=raw_item.call_id,
            name=raw_item.name,
            arguments=raw_item.arguments,
            id=getattr(raw_item, "id", None),
        )

    if hasattr(raw_item, "model_dump"):
        payload = raw_item.model_dump(exclude_none=True)
    else:
        payload = dict(raw_item) if isinstance(raw_item, dict) else {"type": item_type}
    return UnknownItem(type=str(item_type), payload=payload)


class ResponsesModel:
    """
    ModelClient backed by ``AsyncOpenAI().responses.create``.

    Example:
        model = ResponsesModel(api_key="sk-...", model="gpt-4.1")
        items = await model.send(transcript, "You are helpful.", specs)
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4.1",
        verbosity: str | None = None,
        client: AsyncOpenAI | None = None
    ):
        """
        Args:
            api_key: OpenAI API key (ignored when ``client`` is given)
            model: Model name used for every request
            verbosity: Optional text verbosity hint ("low", "medium", "high")
            client: Pre-built client, mainly for tests
        """
        self.client = client or AsyncOpenAI(api_key=api_key)
        self.model = model
        self.verbosity = verbosity

        logger.info(f"Responses model ready: {self.model}")

    @classmethod
    def from_config(cls, config: "OpenAIConfig") -> "ResponsesModel":
        return cls(api_key=config.api_key, model=config.model, verbosity=config.verbosity)

    async def send(
        self,
        transcript: Sequence[Turn],
        system_prompt: str,
        tools: Sequence[ToolSpec]
    ) -> list[OutputItem]:
        text_options: dict[str, Any] = {"format": {"type": "text"}}
        if self.verbosity:
            text_options["verbosity"] = self.verbosity

        request: dict[str, Any] = {
            "model": self.model,
            "input": transcript_to_input(transcript),
            "instructions": system_prompt,
            "text": text_options,
        }
        if tools:
            request["tools"] = [spec.to_openai_tool() for spec in tools]

        logger.debug(
            f"Sending {len(request['input'])} input items with {len(tools)} tools"
        )
        response = await self.client.responses.create(**request)

        return [parse_output_item(item) for item in response.output]
