"""
Utilities Module
================

Common utilities shared across the application:
- logger: Context-prefixed logging with levels
- config: Centralized configuration management
"""

from chatloop.utils.logger import Logger, logger, set_log_level
from chatloop.utils.config import get_config, Config

__all__ = ["Logger", "logger", "set_log_level", "get_config", "Config"]
