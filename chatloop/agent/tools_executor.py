"""
Tool Executor
=============

Resolves one batch of function calls from a model response.

For every call, in the order the model listed them:
1. Parse the JSON arguments
2. Look the handler up by name in the batch's tool snapshot
3. Run it (a missing tool or a raising handler becomes a failed result)
4. Wrap the JSON-encoded result in a ToolResultTurn with the call's id

The snapshot is taken once per batch, so every call in a batch sees the
same set of tools even if the registry changes while handlers run.
"""

import json
from typing import Iterable, Sequence

from chatloop.agent.transcript import FunctionCallItem, ToolResultTurn
from chatloop.tools import Tool, ToolResult, call_handler
from chatloop.utils.logger import Logger

logger = Logger("ToolExecutor")


def snapshot_tools(tools: Iterable[Tool]) -> dict[str, Tool]:
    """Map tool names to tools. The first tool with a given name wins."""
    by_name: dict[str, Tool] = {}
    for tool in tools:
        by_name.setdefault(tool.name, tool)
    return by_name


def encode_result(result: ToolResult) -> str:
    return json.dumps(result.to_dict(), default=str)


class ToolExecutor:
    """
    Executes the function calls of one model response.

    Example:
        executor = ToolExecutor()
        turns = await executor.execute_all(calls, registry.list_tools())
        transcript.extend(turns)
    """

    async def execute_one(
        self,
        call: FunctionCallItem,
        tools: dict[str, Tool]
    ) -> ToolResultTurn:
        """
        Execute a single function call against a tool snapshot.

        Returns:
            ToolResultTurn carrying the call id and the encoded result
        """
        try:
            arguments = json.loads(call.arguments) if call.arguments else {}
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse arguments for {call.name}", e)
            result = ToolResult.failure(f"Invalid arguments: {e}")
            return ToolResultTurn(call_id=call.call_id, output=encode_result(result))

        tool = tools.get(call.name)
        if tool is None:
            logger.warning(f"Model called unknown tool: {call.name}")
            result = ToolResult.not_found()
        else:
            logger.info(f"Executing tool: {call.name}")
            result = await call_handler(call.name, tool.handler, arguments)

        try:
            output = encode_result(result)
        except (TypeError, ValueError) as e:
            logger.error(f"Result of {call.name} is not JSON serializable", e)
            result = ToolResult.failure(f"Unserializable result: {e}")
            output = encode_result(result)

        if result.success:
            logger.debug(f"Tool {call.name} succeeded")
        else:
            logger.warning(f"Tool {call.name} failed: {result.message or result.content}")

        return ToolResultTurn(call_id=call.call_id, output=output)

    async def execute_all(
        self,
        calls: Sequence[FunctionCallItem],
        tools: Iterable[Tool]
    ) -> list[ToolResultTurn]:
        """
        Execute a batch of calls sequentially.

        Args:
            calls: Function calls in the order the model listed them
            tools: The current tool list; snapshotted once for the batch

        Returns:
            One ToolResultTurn per call, in the same order
        """
        snapshot = snapshot_tools(tools)
        results = []

        for call in calls:
            results.append(await self.execute_one(call, snapshot))

        logger.debug(f"Resolved {len(results)} tool calls")
        return results
