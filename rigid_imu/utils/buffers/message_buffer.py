# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

from collections import deque
from collections.abc import Iterator
from typing import Generic, TypeVar

T = TypeVar("T")


class MessageBuffer(Generic[T]):
    """Bounded first-in-first-out buffer for incoming transport messages.

    The buffer decouples a producer that delivers messages at its own rate from a consumer that
    reads them once per simulation step. When a push exceeds the maximum length, the oldest message
    is dropped. The buffer is a backpressure valve, not a delivery guarantee.

    The buffer itself is not thread-safe. The owner is expected to guard it with the same lock that
    protects the rest of its state, so that pushes stay atomic with respect to the consumer.
    """

    def __init__(self, max_len: int):
        """Initialize the message buffer.

        Args:
            max_len: The maximum number of stored messages. The minimum allowed value is 1.

        Raises:
            ValueError: If the buffer size is less than one.
        """
        if max_len < 1:
            raise ValueError(f"The buffer size should be greater than zero. However, it is set to {max_len}!")
        self._max_len = max_len
        self._buffer: deque[T] = deque()
        # number of messages evicted since the last call to :meth:`clear`
        self._num_dropped = 0

    """
    Properties.
    """

    @property
    def max_length(self) -> int:
        """The maximum length of the buffer."""
        return self._max_len

    @property
    def num_dropped(self) -> int:
        """Number of messages evicted because the buffer was full."""
        return self._num_dropped

    @property
    def latest(self) -> T | None:
        """The most recently pushed message. None if the buffer is empty."""
        return self._buffer[-1] if self._buffer else None

    """
    Operations.
    """

    def push(self, msg: T) -> T | None:
        """Append a message, evicting the oldest one if the buffer overflows.

        Args:
            msg: The message to append.

        Returns:
            The evicted message, or None if nothing was evicted.
        """
        self._buffer.append(msg)
        if len(self._buffer) > self._max_len:
            self._num_dropped += 1
            return self._buffer.popleft()
        return None

    def clear(self):
        """Remove all messages and reset the drop counter."""
        self._buffer.clear()
        self._num_dropped = 0

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[T]:
        """Iterate over the stored messages, oldest first."""
        return iter(self._buffer)
