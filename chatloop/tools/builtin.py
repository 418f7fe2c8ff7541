"""
Built-in Tools
==============

A couple of general-purpose tools that are useful in almost any
deployment:

- get_current_time: the current date and time, optionally in a timezone
- fetch_url: download a web page or API response as text

Register them with ``register_builtin_tools(registry)``. Deployment-specific
tools are registered the same way from their own modules.
"""

from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx

from chatloop.tools import ToolRegistry, ToolResult, build_parameter, build_tool
from chatloop.utils.logger import Logger

logger = Logger("BuiltinTools")

FETCH_TIMEOUT_SECONDS = 15.0
DEFAULT_MAX_CHARS = 4000


# ==============================================================================
# Tool: Current Time
# ==============================================================================

def _get_current_time(params: dict) -> ToolResult:
    """Return the current time, in the requested IANA timezone if given."""
    tz_name = params.get("timezone")

    if tz_name:
        try:
            now = datetime.now(ZoneInfo(tz_name))
        except (ZoneInfoNotFoundError, ValueError):
            return ToolResult(success=False, message=f"Unknown timezone: {tz_name}")
    else:
        now = datetime.now().astimezone()

    return ToolResult(success=True, content={
        "iso": now.isoformat(timespec="seconds"),
        "weekday": now.strftime("%A"),
        "timezone": tz_name or now.tzname(),
    })


current_time_tool = build_tool(
    "get_current_time",
    "Get the current date and time. Use this for anything relative to 'now'.",
    [
        build_parameter(
            "timezone", "string",
            "IANA timezone name such as Europe/Berlin; defaults to server local time",
            False,
        ),
    ],
    _get_current_time,
)


# ==============================================================================
# Tool: Fetch URL
# ==============================================================================

async def _fetch_url(params: dict, transport: httpx.AsyncBaseTransport | None = None) -> ToolResult:
    """Fetch a URL and return its (truncated) text body."""
    url = params.get("url")
    max_chars = params.get("max_chars")
    if max_chars is None:
        max_chars = DEFAULT_MAX_CHARS

    if not url or not url.startswith(("http://", "https://")):
        return ToolResult(success=False, message="A full http(s) URL is required")
    if isinstance(max_chars, bool) or not isinstance(max_chars, int) or max_chars < 1:
        return ToolResult(success=False, message=f"max_chars must be a positive integer, got {max_chars!r}")

    try:
        async with httpx.AsyncClient(
            timeout=FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
            transport=transport,
        ) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        logger.warning(f"Fetch failed for {url}: {e}")
        return ToolResult(success=False, message=f"Request failed: {e}")

    if response.status_code >= 400:
        return ToolResult(
            success=False,
            content={"status": response.status_code},
            message=f"HTTP {response.status_code} from {url}",
        )

    text = response.text
    return ToolResult(success=True, content={
        "status": response.status_code,
        "content_type": response.headers.get("content-type", ""),
        "text": text[:max_chars],
        "truncated": len(text) > max_chars,
    })


fetch_url_tool = build_tool(
    "fetch_url",
    "Download a web page or JSON API response and return its text.",
    [
        build_parameter("url", "string", "The http(s) URL to fetch", True),
        build_parameter(
            "max_chars", "integer",
            f"Maximum characters of body to return (default {DEFAULT_MAX_CHARS})",
            False,
        ),
    ],
    _fetch_url,
)


BUILTIN_TOOLS = [current_time_tool, fetch_url_tool]


def register_builtin_tools(registry: ToolRegistry) -> None:
    """Register all built-in tools with the registry."""
    for tool in BUILTIN_TOOLS:
        registry.register(tool)
    logger.info(f"Registered {len(BUILTIN_TOOLS)} built-in tools")
