# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""
Imu Sensor
"""

from .imu import Imu
from .imu_cfg import ImuCfg
from .imu_data import ImuData
