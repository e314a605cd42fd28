# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Sub-package with the physics interfaces consumed by the sensors.

The sensors depend only on the :class:`RigidBody` and :class:`PhysicsWorld` protocols. The
kinematic implementations are scripted stand-ins that need no physics engine.
"""

from .interfaces import PhysicsWorld, RigidBody
from .kinematic_body import KinematicRigidBody, KinematicWorld
