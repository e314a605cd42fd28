# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Scripted rigid bodies and a minimal world that hosts them.

These classes implement :class:`~rigid_imu.physics.interfaces.RigidBody` and
:class:`~rigid_imu.physics.interfaces.PhysicsWorld` without a physics engine. The caller writes the
pose and twist of each body directly, and :meth:`KinematicWorld.step` integrates them at constant
velocity. They are meant for replaying recorded trajectories and for testing sensors.
"""

from __future__ import annotations

import logging
import torch
from collections.abc import Sequence

import rigid_imu.utils.math as math_utils

# import logger
logger = logging.getLogger(__name__)


class KinematicRigidBody:
    """A rigid body whose state is written by the user instead of simulated."""

    def __init__(
        self,
        scoped_name: str,
        pos: Sequence[float] = (0.0, 0.0, 0.0),
        rot: Sequence[float] = (1.0, 0.0, 0.0, 0.0),
        device: str = "cpu",
    ):
        """Initializes the body at rest.

        Args:
            scoped_name: Fully scoped name of the body, e.g. ``"robot::base_link"``.
            pos: Initial position in the world frame. Defaults to the origin.
            rot: Initial orientation (w, x, y, z) in the world frame. Defaults to identity.
            device: Device on which the state tensors are stored. Defaults to "cpu".
        """
        self._scoped_name = scoped_name
        self._device = device
        self._pos_w = torch.zeros(3, device=device)
        self._quat_w = math_utils.default_orientation(1, device).squeeze(0)
        self._lin_vel_w = torch.zeros(3, device=device)
        self._ang_vel_w = torch.zeros(3, device=device)
        self._sim_time = 0.0
        self.set_world_pose(pos, rot)

    def __str__(self) -> str:
        return f"KinematicRigidBody '{self._scoped_name}' @ t={self._sim_time:.4f}s"

    """
    Properties
    """

    @property
    def scoped_name(self) -> str:
        return self._scoped_name

    @property
    def device(self) -> str:
        return self._device

    @property
    def sim_time(self) -> float:
        """Simulation time (in seconds) at which the current state is valid."""
        return self._sim_time

    """
    Queries
    """

    def get_world_pose(self) -> tuple[torch.Tensor, torch.Tensor]:
        return self._pos_w.clone(), self._quat_w.clone()

    def get_world_linear_vel(self, offset: torch.Tensor | None = None) -> tuple[float, torch.Tensor]:
        lin_vel_w = self._lin_vel_w.clone()
        if offset is not None:
            # a point away from the origin also moves with the rotation of the body
            offset_w = math_utils.quat_apply(self._quat_w, offset.to(self._device))
            lin_vel_w += torch.linalg.cross(self._ang_vel_w, offset_w, dim=-1)
        return self._sim_time, lin_vel_w

    def get_world_angular_vel(self) -> torch.Tensor:
        return self._ang_vel_w.clone()

    """
    Operations
    """

    def set_world_pose(self, pos: Sequence[float] | torch.Tensor, rot: Sequence[float] | torch.Tensor):
        """Writes the pose of the body.

        Args:
            pos: Position in the world frame. Shape is (3,).
            rot: Orientation (w, x, y, z) in the world frame. Shape is (4,). It is normalized.
        """
        self._pos_w = torch.as_tensor(pos, dtype=torch.float, device=self._device).clone()
        quat = torch.as_tensor(rot, dtype=torch.float, device=self._device)
        self._quat_w = math_utils.normalize(quat.unsqueeze(0)).squeeze(0)

    def set_world_velocity(
        self, lin_vel: Sequence[float] | torch.Tensor, ang_vel: Sequence[float] | torch.Tensor | None = None
    ):
        """Writes the twist of the body origin.

        Args:
            lin_vel: Linear velocity of the body origin in the world frame. Shape is (3,).
            ang_vel: Angular velocity in the world frame. Shape is (3,). Defaults to None,
                which keeps the current angular velocity.
        """
        self._lin_vel_w = torch.as_tensor(lin_vel, dtype=torch.float, device=self._device).clone()
        if ang_vel is not None:
            self._ang_vel_w = torch.as_tensor(ang_vel, dtype=torch.float, device=self._device).clone()

    def set_sim_time(self, sim_time: float):
        """Overrides the timestamp of the current state."""
        self._sim_time = float(sim_time)

    def step(self, dt: float):
        """Integrates the pose at constant twist over ``dt`` seconds and advances the clock.

        Args:
            dt: The time step (in seconds).
        """
        self._pos_w = self._pos_w + self._lin_vel_w * dt
        ang_speed = torch.linalg.norm(self._ang_vel_w)
        if ang_speed > 0.0:
            # the angular velocity is expressed in the world frame, so the increment multiplies from the left
            delta_quat = math_utils.quat_from_angle_axis((ang_speed * dt).unsqueeze(0), self._ang_vel_w.unsqueeze(0))
            self._quat_w = math_utils.normalize(math_utils.quat_mul(delta_quat, self._quat_w.unsqueeze(0))).squeeze(0)
        self._sim_time += dt


class KinematicWorld:
    """A world holding kinematic rigid bodies and a gravity vector."""

    def __init__(self, name: str = "default", gravity: Sequence[float] = (0.0, 0.0, -9.81), device: str = "cpu"):
        """Initializes an empty world.

        Args:
            name: Name of the world. Defaults to "default".
            gravity: Gravity vector in the world frame. Defaults to (0.0, 0.0, -9.81).
            device: Device of the world tensors. Defaults to "cpu".
        """
        self._name = name
        self._device = device
        self._gravity = torch.as_tensor(gravity, dtype=torch.float, device=device)
        self._entities: dict[str, object] = {}
        self._sim_time = 0.0

    def __str__(self) -> str:
        return (
            f"KinematicWorld '{self._name}': \n"
            f"\tentities          : {list(self._entities.keys())}\n"
            f"\tgravity           : {self._gravity.tolist()}\n"
            f"\tsimulation time   : {self._sim_time}\n"
        )

    """
    Properties
    """

    @property
    def name(self) -> str:
        return self._name

    @property
    def device(self) -> str:
        return self._device

    @property
    def sim_time(self) -> float:
        return self._sim_time

    """
    Operations
    """

    def add_entity(self, entity: object, name: str | None = None) -> object:
        """Registers an entity under its scoped name.

        Args:
            entity: The entity to register.
            name: The name to register the entity under. Defaults to None, in which case the
                ``scoped_name`` attribute of the entity is used.

        Returns:
            The registered entity.

        Raises:
            ValueError: If an entity with the same name already exists.
        """
        name = name if name is not None else entity.scoped_name
        if name in self._entities:
            raise ValueError(f"An entity named '{name}' already exists in world '{self._name}'.")
        self._entities[name] = entity
        logger.debug(f"Added entity '{name}' to world '{self._name}'.")
        return entity

    def get_entity(self, name: str) -> object | None:
        return self._entities.get(name)

    def get_gravity(self) -> torch.Tensor:
        return self._gravity.clone()

    def set_gravity(self, gravity: Sequence[float] | torch.Tensor):
        self._gravity = torch.as_tensor(gravity, dtype=torch.float, device=self._device).clone()

    def step(self, dt: float):
        """Advances the simulation clock and every kinematic body by ``dt`` seconds."""
        for entity in self._entities.values():
            if isinstance(entity, KinematicRigidBody):
                entity.step(dt)
        self._sim_time += dt
