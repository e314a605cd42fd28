# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Interfaces of the physics collaborators that feed the sensors.

The sensors never step physics themselves. They only query the world for entities and gravity,
and the attached rigid body for its pose and velocities. Any engine binding that provides these
methods can be used.
"""

from __future__ import annotations

import torch
from typing import Protocol, runtime_checkable


@runtime_checkable
class RigidBody(Protocol):
    """A rigid body (link) whose world-frame state can be queried."""

    @property
    def scoped_name(self) -> str:
        """Fully scoped name of the body, e.g. ``"robot::base_link"``."""
        ...

    def get_world_pose(self) -> tuple[torch.Tensor, torch.Tensor]:
        """Position (3,) and orientation (w, x, y, z) (4,) of the body frame in the world frame."""
        ...

    def get_world_linear_vel(self, offset: torch.Tensor | None = None) -> tuple[float, torch.Tensor]:
        """Linear velocity (3,) in the world frame of a point fixed to the body.

        Args:
            offset: Position of the point in the body frame. Defaults to None, which means
                the body origin.

        Returns:
            The simulation time (in seconds) at which the velocity was sampled and the velocity.
        """
        ...

    def get_world_angular_vel(self) -> torch.Tensor:
        """Angular velocity (3,) of the body in the world frame."""
        ...


@runtime_checkable
class PhysicsWorld(Protocol):
    """The simulated world the sensors are loaded into."""

    @property
    def name(self) -> str:
        """Name of the world. It is used as the namespace of the transport topics."""
        ...

    @property
    def device(self) -> str:
        """Device on which the physics tensors live."""
        ...

    def get_entity(self, name: str) -> object | None:
        """Look up an entity by its scoped name. Returns None if it does not exist."""
        ...

    def get_gravity(self) -> torch.Tensor:
        """Gravity vector (3,) in the world frame."""
        ...
