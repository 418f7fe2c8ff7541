"""
Transcript
==========

The conversation as an append-only list of turns:

    UserTurn        what the user said
    AssistantTurn   everything one model response contained, in order
    ToolResultTurn  the output of one function call, matched by call_id

An AssistantTurn can hold several function calls at once; each of them is
answered by exactly one ToolResultTurn before the model is called again.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union


@dataclass(frozen=True)
class MessageItem:
    """Assistant text. One entry in ``texts`` per content block."""
    type: ClassVar[str] = "message"

    texts: tuple[str, ...]
    id: str | None = None


@dataclass(frozen=True)
class FunctionCallItem:
    """A tool call requested by the model. ``arguments`` is a JSON string."""
    type: ClassVar[str] = "function_call"

    call_id: str
    name: str
    arguments: str
    id: str | None = None


@dataclass(frozen=True)
class UnknownItem:
    """
    Any other output item (reasoning, web search calls, ...).

    ``payload`` is the raw item so it can be sent back unchanged.
    """
    type: str
    payload: dict[str, Any] = field(default_factory=dict)


OutputItem = Union[MessageItem, FunctionCallItem, UnknownItem]


@dataclass(frozen=True)
class UserTurn:
    text: str


@dataclass(frozen=True)
class AssistantTurn:
    items: tuple[OutputItem, ...]

    @property
    def function_calls(self) -> list[FunctionCallItem]:
        return [item for item in self.items if isinstance(item, FunctionCallItem)]


@dataclass(frozen=True)
class ToolResultTurn:
    call_id: str
    output: str


Turn = Union[UserTurn, AssistantTurn, ToolResultTurn]
