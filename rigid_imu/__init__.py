# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Package containing a simulated inertial measurement unit for rigid bodies."""

import os
import toml

# Conveniences to other module directories via relative paths
RIGID_IMU_EXT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../"))
"""Path to the extension source directory."""

RIGID_IMU_METADATA = toml.load(os.path.join(RIGID_IMU_EXT_DIR, "config", "extension.toml"))
"""Extension metadata dictionary parsed from the extension.toml file."""

# Configure the module-level variables
__version__ = RIGID_IMU_METADATA["package"]["version"]
