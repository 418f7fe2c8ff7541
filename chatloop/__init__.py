"""
ChatLoop - Tool-Calling Chat Assistant
======================================

A small orchestration layer around the OpenAI Responses API: it keeps one
conversation transcript, forwards user messages to the model, runs the
tools the model asks for, and relays the model's text to a delivery
channel (HTTP or Slack). A scheduler can send prompts on hourly, daily,
every-N-hours or every-minute intervals.

Package Structure
-----------------
- ``chatloop/agent/``     conversation agent, model client, tool executor
- ``chatloop/tools/``     tool specs, registry, built-in tools
- ``chatloop/scheduler/`` interval kinds and the polling scheduler
- ``chatloop/channels/``  HTTP and Slack delivery channels
- ``chatloop/app.py``     wiring of all of the above
- ``chatloop/main.py``    process entry point
- ``chatloop/utils/``     configuration and logging
"""

__version__ = "1.0.0"
