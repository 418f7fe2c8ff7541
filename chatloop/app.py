"""
Application Wiring
==================

Connects the pieces into one running assistant:

    DeliveryChannel ──text──► Assistant.handle_user_message ──► ConversationAgent.chat
          ▲                                                            │
          └──────────────── add_agent_message (listener) ◄─────────────┘

    IntervalScheduler ──fires──► SCHEDULE_PROMPT through the same path

``handle_user_message`` holds a lock for the whole ``chat`` call, so
messages from the channel and from the scheduler never interleave in the
transcript. Errors from the model are caught here and reported to the
user as a message.
"""

import asyncio
import concurrent.futures

from apscheduler.schedulers.base import BaseScheduler

from chatloop.agent import ConversationAgent, ModelClient, ResponsesModel, SystemPromptAssembler
from chatloop.channels import DeliveryChannel
from chatloop.scheduler import IntervalScheduler, parse_schedule
from chatloop.tools import ToolRegistry
from chatloop.tools.builtin import register_builtin_tools
from chatloop.utils.config import Config
from chatloop.utils.logger import Logger

logger = Logger("Assistant")


def create_channel(config: Config) -> DeliveryChannel:
    """Build the delivery channel selected by CHAT_CHANNEL."""
    if config.channel.kind == "slack":
        from chatloop.channels.slack import SlackChannel
        return SlackChannel(
            bot_token=config.slack.bot_token,
            app_token=config.slack.app_token,
            signing_secret=config.slack.signing_secret,
        )

    from chatloop.channels.http import HttpChatChannel
    return HttpChatChannel(host=config.channel.host, port=config.channel.port)


class Assistant:
    """
    The running application: agent, tools, channel and scheduler.

    Example:
        assistant = Assistant(get_config())
        await assistant.run()       # until the channel stops
        await assistant.shutdown()
    """

    def __init__(
        self,
        config: Config,
        model: ModelClient | None = None,
        registry: ToolRegistry | None = None,
        channel: DeliveryChannel | None = None
    ):
        """
        Args:
            config: Application configuration
            model: Model client; defaults to the OpenAI Responses API
            registry: Tool registry; defaults to a fresh one
            channel: Delivery channel; defaults to the configured one
        """
        self.config = config

        self.registry = registry if registry is not None else ToolRegistry()
        if config.agent.enable_builtin_tools:
            register_builtin_tools(self.registry)

        self.channel = channel if channel is not None else create_channel(config)
        self.channel.set_message_handler(self.handle_user_message)

        self.agent = ConversationAgent(
            model=model or ResponsesModel.from_config(config.openai),
            get_system_prompt=SystemPromptAssembler(config.agent.system_prompt, self.registry.list_tools),
            get_tools=self.registry.list_tools,
            message_listener=self.channel.add_agent_message,
            max_round_trips=config.agent.max_round_trips,
        )

        self.scheduler: IntervalScheduler | None = None
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

        logger.info(
            f"Assistant ready: channel={self.channel.name}, "
            f"tools={len(self.registry.list_names())}"
        )

    async def handle_user_message(self, text: str) -> None:
        """Run one chat turn, then let the channel deliver the replies."""
        async with self._lock:
            try:
                await self.agent.chat(text)
            except Exception as e:
                logger.error("Error processing message", e)
                self.channel.add_agent_message(f"I encountered an error: {e}")

            await self.channel.flush()

    def start_scheduler(self, scheduler: BaseScheduler | None = None) -> IntervalScheduler | None:
        """
        Start scheduled prompts if SCHEDULE is configured.

        Must be called from inside the running event loop.
        """
        self._loop = asyncio.get_running_loop()

        if not self.config.schedule.enabled:
            logger.debug("No schedule configured")
            return None

        self.scheduler = IntervalScheduler(
            parse_schedule(self.config.schedule.intervals),
            self._on_schedule,
            scheduler=scheduler,
        )
        return self.scheduler

    def _on_schedule(self) -> None:
        # Ticks may run on a worker thread; hand the chat over to the loop
        if self._loop is None:
            logger.warning("Schedule fired before the event loop was known")
            return
        logger.info("Schedule fired, sending scheduled prompt")
        future = asyncio.run_coroutine_threadsafe(
            self.handle_user_message(self.config.schedule.prompt),
            self._loop,
        )
        future.add_done_callback(self._log_schedule_outcome)

    @staticmethod
    def _log_schedule_outcome(future: "concurrent.futures.Future[None]") -> None:
        if future.cancelled():
            logger.warning("Scheduled prompt was cancelled")
            return
        error = future.exception()
        if error is not None:
            logger.error("Scheduled prompt failed", error)

    async def run(self) -> None:
        """Start the scheduler and serve the channel until it stops."""
        self.start_scheduler()
        await self.channel.start()

    async def shutdown(self) -> None:
        logger.info("Shutting down...")

        if self.scheduler is not None:
            self.scheduler.terminate()

        await self.channel.stop()
        logger.info("Shutdown complete")
