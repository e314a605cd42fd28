# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Message records exchanged over the transport."""

from __future__ import annotations

import itertools
import threading
import torch
from dataclasses import dataclass

_REQUEST_ID_COUNTER = itertools.count(1)
_REQUEST_ID_LOCK = threading.Lock()


def next_request_id() -> int:
    """Returns a process-wide unique request identifier."""
    with _REQUEST_ID_LOCK:
        return next(_REQUEST_ID_COUNTER)


@dataclass(frozen=True)
class Request:
    """A request to the simulation server."""

    id: int
    """Identifier used to correlate the response."""

    request: str
    """Kind of the request, e.g. ``"link_publish"``."""

    data: str = ""
    """Optional argument of the request."""


@dataclass(frozen=True)
class Response:
    """The answer of the simulation server to a :class:`Request`."""

    id: int | None
    """Identifier of the request this response answers. None if the server could not correlate it."""

    request: str
    """Kind of the answered request."""

    response: str = "success"
    """Outcome reported by the server."""

    type: str = ""
    """Type name of the serialized payload, if any."""

    serialized_data: bytes = b""
    """Serialized payload of the response."""


@dataclass(frozen=True)
class LinkData:
    """Kinematic snapshot of a link published by the physics side."""

    name: str
    """Scoped name of the link."""

    stamp: float
    """Simulation time (in seconds) of the snapshot."""

    linear_velocity: torch.Tensor | None = None
    """Linear velocity of the link in the world frame. Shape is (3,)."""

    angular_velocity: torch.Tensor | None = None
    """Angular velocity of the link in the world frame. Shape is (3,)."""


def create_request(request: str, data: str = "") -> Request:
    """Creates a request with a fresh identifier.

    Args:
        request: Kind of the request.
        data: Optional argument of the request. Defaults to "".

    Returns:
        The request.
    """
    return Request(id=next_request_id(), request=request, data=data)
