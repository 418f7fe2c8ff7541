"""
System Prompt Assembly
======================

Builds the system prompt the agent sends with every round trip. The
prompt is rebuilt each time, so it always reflects the current clock and
the tools that are registered right now.

Layout:
    <base prompt>

    Current date and time: Tuesday 2024-01-30T10:30:00+01:00

    Available tools: get_current_time, fetch_url
"""

from datetime import datetime
from typing import Callable

from chatloop.tools import Tool
from chatloop.utils.logger import Logger

logger = Logger("Context")


class SystemPromptAssembler:
    """
    Callable system prompt supplier.

    Example:
        assembler = SystemPromptAssembler("You are helpful.", registry.list_tools)
        agent = ConversationAgent(model, get_system_prompt=assembler, ...)
    """

    PROMPT_TEMPLATE = """{base}

{time_context}

{tools_context}
"""

    def __init__(
        self,
        base_prompt: str,
        get_tools: Callable[[], list[Tool]] | None = None,
        clock: Callable[[], datetime] | None = None
    ):
        """
        Args:
            base_prompt: Fixed instructions, usually from SYSTEM_PROMPT
            get_tools: Tool supplier used to list tool names
            clock: Returns "now"; defaults to local time
        """
        self.base_prompt = base_prompt
        self.get_tools = get_tools
        self.clock = clock or (lambda: datetime.now().astimezone())

    def _tools_context(self) -> str:
        if self.get_tools is None:
            return ""
        names = [tool.name for tool in self.get_tools()]
        if not names:
            return ""
        return "Available tools: " + ", ".join(names)

    def build(self) -> str:
        now = self.clock()
        time_context = f"Current date and time: {now.strftime('%A')} {now.isoformat(timespec='seconds')}"

        prompt = self.PROMPT_TEMPLATE.format(
            base=self.base_prompt.strip(),
            time_context=time_context,
            tools_context=self._tools_context(),
        )

        # Drop empty sections
        prompt = "\n\n".join(
            section.strip() for section in prompt.split("\n\n")
            if section.strip()
        )
        logger.debug(f"System prompt is {len(prompt)} chars")
        return prompt

    def __call__(self) -> str:
        return self.build()
