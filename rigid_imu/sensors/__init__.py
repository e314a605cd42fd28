# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Sub-package containing the sensor implementations.

Each sensor class is paired with a configuration class deriving from :class:`SensorBaseCfg`.
A sensor is created from its configuration and the message bus, then loaded into a world:

.. code-block:: python

    from rigid_imu.sensors import Imu, ImuCfg
    from rigid_imu.transport import MessageBus

    imu = Imu(ImuCfg(parent_name="robot::base_link"), MessageBus())
    imu.load(world)
    imu.init()
    imu.update(dt)
"""

from .imu import *  # noqa: F401, F403
from .sensor_base import SensorBase  # noqa: F401
from .sensor_base_cfg import SensorBaseCfg  # noqa: F401
