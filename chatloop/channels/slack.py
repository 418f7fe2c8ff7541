"""
Slack Channel
=============

Delivers the conversation through Slack using Bolt in Socket Mode (no
public URL needed).

Inbound:
- app_mention: someone mentions the bot in a channel
- message.im: direct messages to the bot

Outbound:
    Assistant messages are queued while the agent runs and posted by
    ``flush()`` to the conversation the latest user message came from
    (the thread, for mentions). Messages produced before anyone has
    written to the bot stay queued until there is somewhere to post them.

There is a single transcript, so everyone talking to the bot shares one
conversation.
"""

import asyncio
import re

from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_bolt.async_app import AsyncApp, AsyncSay

from chatloop.channels import DeliveryChannel, UserMessageHandler
from chatloop.utils.logger import Logger

logger = Logger("SlackChannel")

MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+>")

GREETING = "Hi! How can I help you?"
ERROR_REPLY = "Sorry, I encountered an error processing your request."
STARTING_REPLY = "Sorry, I'm still starting up. Please try again in a moment."


class SlackChannel(DeliveryChannel):
    """
    Delivery channel backed by a Slack Bolt app.

    Example:
        channel = SlackChannel(
            bot_token=config.slack.bot_token,
            app_token=config.slack.app_token,
            signing_secret=config.slack.signing_secret,
        )
        channel.set_message_handler(assistant.handle_user_message)
        await channel.start()
    """

    name = "slack"

    def __init__(
        self,
        on_user_message: UserMessageHandler | None = None,
        bot_token: str | None = None,
        app_token: str | None = None,
        signing_secret: str | None = None,
        app: AsyncApp | None = None
    ):
        """
        Args:
            on_user_message: Async handler for inbound text
            bot_token: xoxb-... token for bot operations
            app_token: xapp-... token for Socket Mode
            signing_secret: For verifying Slack requests
            app: Pre-built Bolt app (the tokens are then only used for Socket Mode)
        """
        super().__init__(on_user_message)
        self.app = app or AsyncApp(token=bot_token, signing_secret=signing_secret)
        self.app_token = app_token

        # (channel_id, thread_ts) of the conversation to answer in
        self._reply_to: tuple[str, str | None] | None = None
        self._socket_handler: AsyncSocketModeHandler | None = None
        self._stopped: asyncio.Event | None = None

        self.register_handlers()

    def register_handlers(self) -> None:
        self.app.event("app_mention")(self._handle_mention)
        self.app.event("message")(self._handle_message)
        logger.info("Registered Slack event handlers")

    async def _deliver(self, text: str, channel_id: str, thread_ts: str | None, say: AsyncSay) -> None:
        if self.on_user_message is None:
            logger.error("No message handler configured")
            await say(text=STARTING_REPLY, thread_ts=thread_ts)
            return

        self._reply_to = (channel_id, thread_ts)

        try:
            await self.on_user_message(text)
        except Exception as e:
            logger.error("Error handling Slack message", e)
            await say(text=ERROR_REPLY, thread_ts=thread_ts)

    async def _handle_mention(self, event: dict, say: AsyncSay) -> None:
        """Handle @mentions of the bot; replies go to the thread."""
        channel_id = event.get("channel")
        thread_ts = event.get("thread_ts") or event.get("ts")
        text = MENTION_PATTERN.sub("", event.get("text", "")).strip()

        if not text:
            await say(text=GREETING, thread_ts=thread_ts)
            return

        logger.info(f"Mention from {event.get('user')} in {channel_id}: {text[:50]}")
        await self._deliver(text, channel_id, thread_ts, say)

    async def _handle_message(self, event: dict, say: AsyncSay) -> None:
        """Handle direct messages to the bot."""
        # Only DMs; ignore bots (including ourselves) and edits/deletes
        if event.get("channel_type") != "im":
            return
        if event.get("bot_id") or event.get("subtype"):
            return

        text = event.get("text", "").strip()
        if not text:
            return

        logger.info(f"DM from {event.get('user')}: {text[:50]}")
        await self._deliver(text, event.get("channel"), None, say)

    async def flush(self) -> None:
        """Post every queued message to the current conversation."""
        if self._reply_to is None:
            if self.pending():
                logger.debug(f"{self.pending()} messages waiting for a conversation")
            return

        channel_id, thread_ts = self._reply_to
        for message in self.drain():
            await self.app.client.chat_postMessage(
                channel=channel_id,
                text=message,
                thread_ts=thread_ts
            )

    async def start(self) -> None:
        self._stopped = asyncio.Event()
        self._socket_handler = AsyncSocketModeHandler(app=self.app, app_token=self.app_token)

        logger.info("Starting Socket Mode connection...")
        await self._socket_handler.connect_async()
        await self._stopped.wait()

    async def stop(self) -> None:
        if self._socket_handler is not None:
            await self._socket_handler.close_async()
            logger.info("Socket Mode connection closed")
        if self._stopped is not None:
            self._stopped.set()
