"""
ChatLoop - Main Entry Point
===========================

1. Loads configuration
2. Builds the assistant (tools, agent, channel)
3. Starts the scheduler and the delivery channel
4. Shuts down cleanly on SIGINT / SIGTERM

Run with:
    python -m chatloop.main

Or after installing:
    chatloop
"""

import asyncio
import signal
import sys

from chatloop.utils.config import get_config
from chatloop.utils.logger import Logger, set_log_level

main_logger = Logger("Main")


async def main():
    """
    Main async entry point.

    Initializes all components and runs until the channel stops.
    """
    main_logger.info("Starting ChatLoop...")

    try:
        # 1. Load configuration (validates required env vars and SCHEDULE)
        config = get_config()
        set_log_level(config.log_level)

        # 2. Build the assistant
        main_logger.info(f"Creating assistant with model {config.openai.model}...")
        from chatloop.app import Assistant
        assistant = Assistant(config)

    except Exception as e:
        main_logger.error("Failed to start ChatLoop", e)
        sys.exit(1)

    # 3. Graceful shutdown
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(assistant.shutdown())
        )

    # 4. Serve
    main_logger.info("ChatLoop is running! Press Ctrl+C to stop.")
    await assistant.run()


def run():
    """
    Synchronous entry point, used by the ``chatloop`` command.
    """
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
