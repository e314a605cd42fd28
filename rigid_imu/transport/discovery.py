# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

"""Correlated request/response bookkeeping for one-shot discovery exchanges."""

from __future__ import annotations

import enum
import logging
import threading

from .messages import Request, Response, create_request

# import logger
logger = logging.getLogger(__name__)


class RequestState(enum.Enum):
    """State of an issued request."""

    PENDING = "pending"
    """Issued and waiting for its response."""

    RESOLVED = "resolved"
    """A matching response was received."""


class LinkDiscovery:
    """Table of outstanding requests keyed by request identifier.

    Each request completes at most once: the first response carrying its identifier resolves it and
    removes it from the table, so that duplicated or late responses are ignored. There is no timeout
    and no retry. A request that is never answered stays pending forever.
    """

    LINK_PUBLISH = "link_publish"
    """Request kind asking the simulation server to publish link data."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending: dict[int, Request] = {}
        self._resolved_ids: set[int] = set()
        self._num_resolved = 0

    def __str__(self) -> str:
        return f"LinkDiscovery: {len(self._pending)} pending, {self._num_resolved} resolved"

    """
    Properties
    """

    @property
    def is_pending(self) -> bool:
        """Whether at least one request is waiting for its response."""
        with self._lock:
            return len(self._pending) > 0

    @property
    def pending_ids(self) -> list[int]:
        with self._lock:
            return list(self._pending.keys())

    @property
    def num_resolved(self) -> int:
        """Number of requests resolved since construction."""
        return self._num_resolved

    """
    Operations
    """

    def request(self, kind: str = LINK_PUBLISH, data: str = "") -> Request:
        """Creates a request and registers it as pending.

        The caller is responsible for publishing the returned request.

        Args:
            kind: Kind of the request. Defaults to ``"link_publish"``.
            data: Optional argument of the request. Defaults to "".

        Returns:
            The registered request.
        """
        request = create_request(kind, data)
        with self._lock:
            self._pending[request.id] = request
        logger.debug(f"Issued '{kind}' request with id {request.id}.")
        return request

    def state(self, request_id: int) -> RequestState | None:
        """Returns the state of a request, or None if it was never issued by this table."""
        with self._lock:
            if request_id in self._pending:
                return RequestState.PENDING
            if request_id in self._resolved_ids:
                return RequestState.RESOLVED
        return None

    def resolve(self, response: Response) -> Request | None:
        """Matches a response against the pending requests.

        Args:
            response: The received response.

        Returns:
            The request that the response resolved, or None if the response does not correspond to
            a pending request (unknown or missing identifier, or the request was already resolved).
        """
        if response.id is None:
            logger.debug(f"Ignoring '{response.request}' response without request id.")
            return None
        with self._lock:
            request = self._pending.pop(response.id, None)
            if request is not None:
                self._resolved_ids.add(request.id)
                self._num_resolved += 1
        if request is None:
            logger.debug(f"Ignoring response with id {response.id}: no matching pending request.")
        else:
            logger.debug(f"Resolved '{request.request}' request with id {request.id}.")
        return request

    def cancel(self):
        """Forgets every pending request. Responses arriving later are ignored."""
        with self._lock:
            self._pending.clear()
