"""
Agent System
============

The agent keeps the conversation transcript and runs the
model → tools → model loop until the model answers without tool calls.

This module provides:
- ConversationAgent: Owns the transcript and drives the loop
- ResponsesModel: OpenAI Responses API client
- SystemPromptAssembler: Builds the per-request system prompt
- ToolExecutor: Resolves a batch of function calls
"""

from chatloop.agent.core import ConversationAgent
from chatloop.agent.context import SystemPromptAssembler
from chatloop.agent.model import ModelClient, ResponsesModel
from chatloop.agent.tools_executor import ToolExecutor

__all__ = [
    "ConversationAgent",
    "ModelClient",
    "ResponsesModel",
    "SystemPromptAssembler",
    "ToolExecutor",
]
