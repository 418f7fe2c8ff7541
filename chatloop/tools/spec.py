"""
Tool Specs
==========

Builds function-tool definitions for the OpenAI Responses API from a short
declarative parameter list, so tool modules never hand-write JSON schema.

Example:
    from chatloop.tools.spec import array_of, build_parameter, build_tool

    async def get_blog_posts(params: dict) -> ToolResult:
        ...

    tool = build_tool(
        "get_blog_posts",
        "Retrieve blog posts",
        [
            build_parameter("limit", "integer", "Maximum posts to return", True),
            build_parameter("tags", array_of("string"), "Filter by tag", False),
        ],
        get_blog_posts,
    )

    tool.spec.to_openai_tool()
    # {"type": "function", "name": "get_blog_posts", "strict": False, ...}

The generated schema always sets ``additionalProperties`` to false, so the
model is told not to send undeclared fields.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from chatloop.tools import ToolHandler

PRIMITIVE_TYPES = ("string", "integer", "boolean", "object")


@dataclass(frozen=True)
class ArrayOf:
    """Marks a parameter as an array whose elements are ``items``."""
    items: str


def array_of(item_type: str) -> ArrayOf:
    """Shorthand for an array parameter type."""
    return ArrayOf(items=item_type)


def _check_primitive(type_name: str) -> str:
    if type_name not in PRIMITIVE_TYPES:
        raise ValueError(
            f"Unsupported parameter type {type_name!r}; "
            f"expected one of {', '.join(PRIMITIVE_TYPES)} or array_of(...)"
        )
    return type_name


@dataclass(frozen=True)
class ToolParameter:
    """
    One declared tool parameter.

    Attributes:
        name: Property name in the arguments object
        type: A primitive type name, or "array"
        description: Shown to the model
        required: Whether the model must always supply it
        items: Element type when ``type`` is "array"
    """
    name: str
    type: str
    description: str
    required: bool
    items: str | None = None

    def to_property(self) -> dict[str, Any]:
        """Render the JSON-schema property for this parameter."""
        prop: dict[str, Any] = {"type": self.type}
        if self.items is not None:
            prop["items"] = {"type": self.items}
        prop["description"] = self.description
        return prop


@dataclass(frozen=True)
class ToolSpec:
    """
    A tool definition as the model sees it.

    Attributes:
        name: Unique tool name
        description: What the tool does
        parameters: JSON schema of the arguments object
    """
    name: str
    description: str
    parameters: dict[str, Any]

    def to_openai_tool(self) -> dict[str, Any]:
        """Format for the ``tools`` argument of ``responses.create``."""
        return {
            "type": "function",
            "name": self.name,
            "description": self.description,
            "strict": False,
            "parameters": self.parameters,
        }


@dataclass(frozen=True)
class Tool:
    """A tool spec bound to the handler that executes it."""
    spec: ToolSpec
    handler: "ToolHandler"

    @property
    def name(self) -> str:
        return self.spec.name


def build_parameter(
    name: str,
    type: "str | ArrayOf",
    description: str,
    required: bool = True
) -> ToolParameter:
    """
    Declare a tool parameter.

    Args:
        name: Parameter name
        type: "string", "integer", "boolean", "object", or ``array_of(<one of those>)``
        description: Parameter description for the model
        required: Whether the parameter is mandatory

    Raises:
        ValueError: If the type (or array element type) is not supported
    """
    if isinstance(type, ArrayOf):
        return ToolParameter(
            name=name,
            type="array",
            items=_check_primitive(type.items),
            description=description,
            required=required,
        )
    return ToolParameter(
        name=name,
        type=_check_primitive(type),
        description=description,
        required=required,
    )


def build_schema(parameters: Sequence[ToolParameter]) -> dict[str, Any]:
    """Build the object schema for a parameter list."""
    return {
        "type": "object",
        "properties": {param.name: param.to_property() for param in parameters},
        "required": [param.name for param in parameters if param.required],
        "additionalProperties": False,
    }


def build_tool(
    name: str,
    description: str,
    parameters: Sequence[ToolParameter],
    handler: "ToolHandler"
) -> Tool:
    """
    Build a tool from a declarative parameter list and bind its handler.

    Args:
        name: Tool name the model will call
        description: What the tool does
        parameters: Parameters from ``build_parameter``
        handler: Sync or async callable taking the parsed arguments dict

    Returns:
        Tool ready to register
    """
    spec = ToolSpec(
        name=name,
        description=description,
        parameters=build_schema(parameters),
    )
    return Tool(spec=spec, handler=handler)
