"""
Logging configuration for the shopping list bot.
"""

import logging
import sys

def setup_logging(debug: bool = False):
    """Setup logging with proper format and handlers."""

    level = logging.DEBUG if debug else logging.INFO

    # Create logger
    logger = logging.getLogger("shopbot")
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # Create console handler with formatting
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger

# Global logger instance (reconfigured from settings at startup)
bot_logger = setup_logging()
