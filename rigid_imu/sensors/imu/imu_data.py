# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import torch
from dataclasses import dataclass


@dataclass(frozen=True)
class ImuData:
    """Data container for the Imu sensor.

    A new instance is created on every update, so a reading handed out to a subscriber is never
    modified afterwards.
    """

    entity_name: str
    """Scoped name of the entity the sensor is attached to."""

    stamp: float = 0.0
    """Simulation time (in seconds) at which the body velocity was sampled."""

    orientation: torch.Tensor = None
    """Orientation of the sensor in quaternion ``(w, x, y, z)`` relative to its reference pose.

    Shape is (4,).
    """

    angular_velocity: torch.Tensor = None
    """IMU frame angular velocity relative to the world expressed in IMU frame.

    Shape is (3,).
    """

    linear_acceleration: torch.Tensor = None
    """IMU frame linear acceleration expressed in IMU frame, including the reaction to gravity.

    A sensor at rest reads the opposite of the gravity vector, e.g. ``(0, 0, 9.81)`` when level.
    Shape is (3,).
    """
