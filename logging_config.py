"""
Logging setup for the Foodify API.

``setup_logging`` attaches a single console handler to the root logger.
Calling it again (tests, repeated ``create_app``) is a no-op.
"""

import logging


def setup_logging(level: str = "INFO") -> None:
    logger = logging.getLogger()
    if logger.handlers:
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)


def log_unhandled(loop, context: dict) -> None:
    """asyncio exception handler: log errors no task awaited."""
    exc = context.get("exception")
    logging.getLogger("foodify").error(
        "Unhandled async error: %s", context.get("message", "unknown"), exc_info=exc
    )
