# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Base class for sensors.

Each sensor class should inherit from this class and implement the abstract methods.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from rigid_imu.transport import MessageBus, Node, Subscriber

if TYPE_CHECKING:
    from rigid_imu.physics import PhysicsWorld

    from .sensor_base_cfg import SensorBaseCfg

# import logger
logger = logging.getLogger(__name__)


class SensorBase(ABC):
    """The base class for implementing a sensor.

    A sensor goes through the following life cycle:

    1. :meth:`load` resolves the sensor against a world and sets up its transport endpoints.
    2. :meth:`init` activates the sensor if :attr:`SensorBaseCfg.always_on` is set. The sensor can
       also be (de)activated at any time with :meth:`set_active`.
    3. :meth:`update` is called once per simulation step. The sensor computes new data when it is
       active and its update period has elapsed. If the update period is zero, then the sensor is
       updated at every simulation step.
    4. :meth:`fini` deactivates the sensor and releases its subscriptions.
    """

    def __init__(self, cfg: SensorBaseCfg, bus: MessageBus):
        """Initialize the sensor class.

        Args:
            cfg: The configuration parameters for the sensor.
            bus: The message bus the sensor communicates on.

        Raises:
            ValueError: If the update period is negative.
            TypeError: If the configuration has missing values.
        """
        # check that config is valid
        if cfg.update_period < 0:
            raise ValueError(f"Update period must be non-negative! Received: {cfg.update_period}")
        cfg.validate()
        # store inputs
        self.cfg = cfg.copy()
        self._bus = bus
        # the node is created on load, once the namespace (world name) is known
        self.node: Node | None = None
        self._world: PhysicsWorld | None = None
        self._topic: str | None = None
        self._subscriptions: list[Subscriber] = []
        # flags for the life cycle of the sensor
        self._is_loaded = False
        self._is_active = False
        # current timestamp and timestamp of the last update (in seconds)
        self._timestamp = 0.0
        self._timestamp_last_update = 0.0
        self._is_outdated = True

    """
    Properties
    """

    @property
    def name(self) -> str:
        return self.cfg.name

    @property
    def parent_name(self) -> str:
        """Scoped name of the entity the sensor is attached to."""
        return self.cfg.parent_name

    @property
    def world(self) -> PhysicsWorld | None:
        """The world the sensor is loaded into. None before :meth:`load`."""
        return self._world

    @property
    def topic(self) -> str | None:
        """Topic on which the sensor publishes its data. None if the sensor does not publish."""
        return self._topic

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def is_active(self) -> bool:
        """Whether the sensor computes data on :meth:`update` and accepts incoming messages."""
        return self._is_active

    @property
    @abstractmethod
    def data(self) -> Any:
        """Latest data computed by the sensor."""
        raise NotImplementedError

    """
    Operations
    """

    def load(self, world: PhysicsWorld):
        """Resolves the sensor inside a world.

        Args:
            world: The world containing the parent entity of the sensor.

        Raises:
            RuntimeError: If the sensor is already loaded, or if the implementation fails to
                resolve its parent. In the latter case the sensor remains unloaded.
        """
        if self._is_loaded:
            raise RuntimeError(f"Sensor '{self.name}' is already loaded in world '{self._world.name}'.")
        self._world = world
        self.node = Node(self._bus, namespace=world.name)
        try:
            self._load_impl()
        except Exception:
            # release whatever the implementation managed to set up before failing
            self._clear_subscriptions()
            self._world = None
            self.node = None
            raise
        self._is_loaded = True
        logger.info(f"Loaded sensor '{self.name}' attached to '{self.parent_name}' in world '{world.name}'.")

    def init(self):
        """Initializes the sensor. Activates it when configured to be always on."""
        if self.cfg.always_on:
            self.set_active(True)

    def set_active(self, value: bool):
        """Activates or deactivates the sensor.

        Raises:
            RuntimeError: When activating a sensor that is not loaded.
        """
        if value and not self._is_loaded:
            raise RuntimeError(f"Sensor '{self.name}' cannot be activated before it is loaded.")
        if value != self._is_active:
            logger.debug(f"Sensor '{self.name}' is now {'active' if value else 'inactive'}.")
        self._is_active = value

    def reset(self):
        """Resets the update clock of the sensor."""
        self._timestamp = 0.0
        self._timestamp_last_update = 0.0
        self._is_outdated = True

    def update(self, dt: float, force_recompute: bool = False) -> bool:
        """Advances the sensor clock and computes new data if due.

        Args:
            dt: Time elapsed since the previous call (in seconds).
            force_recompute: Whether to compute new data regardless of the update period.

        Returns:
            True if new data was computed, False otherwise.
        """
        self._timestamp += dt
        self._is_outdated |= self._timestamp - self._timestamp_last_update + 1e-6 >= self.cfg.update_period
        if not self._is_active:
            return False
        if force_recompute or self._is_outdated:
            self._update_impl()
            self._timestamp_last_update = self._timestamp
            self._is_outdated = False
            return True
        return False

    def fini(self):
        """Deactivates the sensor and unsubscribes from every topic."""
        self._is_active = False
        self._clear_subscriptions()

    """
    Implementation specific.
    """

    @abstractmethod
    def _load_impl(self):
        """Resolves the sensor-related handles and creates the internal buffers.

        :attr:`_world` and :attr:`node` are valid when this function is called.
        """
        raise NotImplementedError

    @abstractmethod
    def _update_impl(self):
        """Computes and publishes new sensor data.

        This function does not perform any time-based checks.
        """
        raise NotImplementedError

    """
    Helper functions.
    """

    def _subscribe(self, topic: str, callback: Callable[[Any], None]) -> Subscriber:
        """Subscribes to a topic and keeps the handle so that :meth:`fini` can release it."""
        subscriber = self.node.subscribe(topic, callback)
        self._subscriptions.append(subscriber)
        return subscriber

    def _clear_subscriptions(self):
        for subscriber in self._subscriptions:
            subscriber.unsubscribe()
        self._subscriptions.clear()
