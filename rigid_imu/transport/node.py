# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""In-process publish/subscribe transport.

A :class:`MessageBus` connects any number of :class:`Node` objects living in the same process.
Messages are delivered synchronously on the publishing thread. Subscribers that need to hand the
message to another thread have to do so themselves.

Topics starting with ``~`` are private to the namespace of the node, i.e. ``~/request`` on a node
with namespace ``default`` resolves to ``/default/request``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

# import logger
logger = logging.getLogger(__name__)


class Subscriber:
    """Handle of a subscription. The callback is invoked until :meth:`unsubscribe` is called."""

    def __init__(self, bus: MessageBus, topic: str, callback: Callable[[Any], None]):
        self._bus = bus
        self._topic = topic
        self._callback = callback
        self._is_subscribed = True

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def is_subscribed(self) -> bool:
        return self._is_subscribed

    def unsubscribe(self):
        """Stops the delivery of messages. Calling it more than once has no effect."""
        if self._is_subscribed:
            self._bus._remove_subscriber(self)
            self._is_subscribed = False

    def _deliver(self, msg: Any):
        if self._is_subscribed:
            self._callback(msg)


class Publisher:
    """Handle for publishing messages of a fixed type on a topic."""

    def __init__(self, bus: MessageBus, topic: str, msg_type: type):
        self._bus = bus
        self._topic = topic
        self._msg_type = msg_type

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def msg_type(self) -> type:
        return self._msg_type

    @property
    def has_connections(self) -> bool:
        """Whether at least one subscriber listens on the topic."""
        return self._bus.num_subscribers(self._topic) > 0

    def publish(self, msg: Any):
        """Publishes a message to every current subscriber of the topic.

        Raises:
            TypeError: If the message is not of the advertised type.
        """
        if not isinstance(msg, self._msg_type):
            raise TypeError(
                f"Topic '{self._topic}' carries '{self._msg_type.__name__}' messages."
                f" Received: '{type(msg).__name__}'."
            )
        self._bus.publish(self._topic, msg)


class MessageBus:
    """Registry of topics and their subscribers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._msg_types: dict[str, type] = {}

    def advertise(self, topic: str, msg_type: type) -> Publisher:
        """Creates a publisher on a fully resolved topic.

        Raises:
            ValueError: If the topic is already advertised with a different message type.
        """
        with self._lock:
            known_type = self._msg_types.setdefault(topic, msg_type)
        if known_type is not msg_type:
            raise ValueError(
                f"Topic '{topic}' is already advertised with message type '{known_type.__name__}'."
                f" Received: '{msg_type.__name__}'."
            )
        logger.debug(f"Advertised topic '{topic}' [{msg_type.__name__}].")
        return Publisher(self, topic, msg_type)

    def subscribe(self, topic: str, callback: Callable[[Any], None]) -> Subscriber:
        """Registers a callback on a fully resolved topic."""
        subscriber = Subscriber(self, topic, callback)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscriber)
        logger.debug(f"Subscribed to topic '{topic}'.")
        return subscriber

    def publish(self, topic: str, msg: Any):
        """Delivers a message to the subscribers registered at the time of the call."""
        with self._lock:
            subscribers = list(self._subscribers.get(topic, ()))
        # callbacks run outside the lock so that they may (un)subscribe or publish themselves
        for subscriber in subscribers:
            subscriber._deliver(msg)

    def num_subscribers(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))

    @property
    def topics(self) -> list[str]:
        """Topics that are advertised or subscribed to."""
        with self._lock:
            return sorted(set(self._msg_types) | {t for t, subs in self._subscribers.items() if subs})

    def _remove_subscriber(self, subscriber: Subscriber):
        with self._lock:
            subscribers = self._subscribers.get(subscriber.topic, [])
            if subscriber in subscribers:
                subscribers.remove(subscriber)


class Node:
    """Endpoint of the transport bound to a namespace."""

    def __init__(self, bus: MessageBus, namespace: str = "default"):
        """Initializes the node.

        Args:
            bus: The bus to communicate on.
            namespace: The namespace that replaces the ``~`` prefix of topics. Defaults to "default".
        """
        self._bus = bus
        self._namespace = namespace.strip("/")

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def bus(self) -> MessageBus:
        return self._bus

    def resolve(self, topic: str) -> str:
        """Expands the ``~`` prefix of a topic into the namespace of the node."""
        if topic.startswith("~"):
            return f"/{self._namespace}" + topic[1:]
        return topic

    def advertise(self, topic: str, msg_type: type) -> Publisher:
        return self._bus.advertise(self.resolve(topic), msg_type)

    def subscribe(self, topic: str, callback: Callable[[Any], None]) -> Subscriber:
        return self._bus.subscribe(self.resolve(topic), callback)
