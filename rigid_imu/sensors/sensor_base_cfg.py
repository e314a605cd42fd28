# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

from dataclasses import MISSING

from rigid_imu.utils import configclass


@configclass
class SensorBaseCfg:
    """Configuration parameters for a sensor."""

    name: str = MISSING
    """Name of the sensor. It is part of the default output topic."""

    parent_name: str = MISSING
    """Scoped name of the entity the sensor is attached to, e.g. ``"robot::base_link"``."""

    update_period: float = 0.0
    """Update period of the sensor (in seconds). Defaults to 0.0 (update every step)."""

    always_on: bool = True
    """Whether the sensor becomes active as soon as it is initialized. Defaults to True."""
