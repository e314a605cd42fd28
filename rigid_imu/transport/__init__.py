# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Sub-package for the message transport between the physics side and the sensors."""

from .discovery import LinkDiscovery, RequestState
from .messages import LinkData, Request, Response, create_request
from .node import MessageBus, Node, Publisher, Subscriber
