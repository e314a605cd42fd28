# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Sub-module with logging utilities.

Every module of the package logs through its own logger obtained with :func:`logging.getLogger`.
Nothing is printed unless the application configures a handler, for instance with
:func:`configure_logging`.

Example:
    >>> import logging
    >>> from rigid_imu.utils.logger import configure_logging
    >>> configure_logging(logging.DEBUG)
    >>> logging.getLogger("rigid_imu.sensors").debug("imu sensor loaded")
"""

from __future__ import annotations

import logging
import time

# import logger
logger = logging.getLogger(__name__)


class ColoredFormatter(logging.Formatter):
    """Colored formatter for logging.

    This formatter colors the log messages based on the log level.
    """

    COLORS = {
        "WARNING": "\033[33m",  # orange/yellow
        "ERROR": "\033[31m",  # red
        "CRITICAL": "\033[31m",  # red
        "INFO": "\033[0m",  # reset
        "DEBUG": "\033[0m",
    }
    """Colors for different log levels."""

    RESET = "\033[0m"
    """Reset color."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record.

        Args:
            record: The log record to format.

        Returns:
            The formatted log record.
        """
        color = self.COLORS.get(record.levelname, self.RESET)
        message = super().format(record)
        return f"{color}{message}{self.RESET}"


class RateLimitFilter(logging.Filter):
    """Custom rate-limited warning filter.

    This filter allows warning-level messages only once every few seconds per message. Sensors
    run once per simulation step, so a misbehaving collaborator would otherwise flood the log
    with the same message.
    """

    def __init__(self, interval_seconds: float = 5):
        """Initialize the rate limit filter.

        Args:
            interval_seconds: The interval in seconds to limit the warnings.
                Defaults to 5 seconds.
        """
        super().__init__()
        self.interval = interval_seconds
        self.last_emitted = {}

    def filter(self, record: logging.LogRecord) -> bool:
        """Allow warning-level messages only once every few seconds per message.

        Args:
            record: The log record to filter.

        Returns:
            True if the message should be logged, False otherwise.
        """
        # only filter warning-level messages
        if record.levelno != logging.WARNING:
            return True
        now = time.time()
        msg_key = record.getMessage()
        if msg_key not in self.last_emitted or (now - self.last_emitted[msg_key]) > self.interval:
            self.last_emitted[msg_key] = now
            return True
        return False


def configure_logging(
    level: int | str = logging.INFO,
    rate_limit_interval: float = 5,
    fmt: str = "[%(levelname)s] %(name)s: %(message)s",
) -> logging.Handler:
    """Attach a colored, rate-limited stream handler to the package logger.

    Calling the function again replaces the handler installed by the previous call.

    Args:
        level: The logging level of the package logger. Defaults to ``logging.INFO``.
        rate_limit_interval: The interval in seconds for repeated warnings. Defaults to 5 seconds.
        fmt: The format string of the handler.

    Returns:
        The installed handler.
    """
    package_logger = logging.getLogger("rigid_imu")
    for handler in list(package_logger.handlers):
        if getattr(handler, "_rigid_imu_handler", False):
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(ColoredFormatter(fmt))
    handler.addFilter(RateLimitFilter(interval_seconds=rate_limit_interval))
    handler._rigid_imu_handler = True
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    return handler
