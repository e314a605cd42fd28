# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import logging
import threading
import torch
from typing import TYPE_CHECKING

import rigid_imu.utils.math as math_utils
from rigid_imu.physics import RigidBody
from rigid_imu.transport import LinkData, LinkDiscovery, MessageBus, Publisher, Request, Response, Subscriber
from rigid_imu.utils.buffers import MessageBuffer

from ..sensor_base import SensorBase
from .imu_data import ImuData

if TYPE_CHECKING:
    from .imu_cfg import ImuCfg

# import logger
logger = logging.getLogger(__name__)


class Imu(SensorBase):
    """The Inertia Measurement Unit (IMU) sensor.

    The sensor is attached to a rigid body and reports, in its own frame, the orientation relative to
    a reference pose, the angular velocity and the linear acceleration. The linear acceleration
    includes the reaction to gravity, so a sensor at rest reads ``+g`` along the up axis.

    .. note::

        The linear acceleration is computed by backward finite differences of the linear velocity of
        the mount point. Steps whose sample time does not advance keep the previous estimate and only
        refresh the gravity term, which is projected with the current orientation.

    At load time the sensor asks the simulation server, through a ``link_publish`` request, to
    publish the kinematics of its parent link. Once the request is answered, the link data is
    buffered in a bounded inbox while the sensor is active.
    """

    cfg: ImuCfg
    """The configuration parameters."""

    DEFAULT_TOPIC = "__default_topic__"
    """Value of :attr:`ImuCfg.topic` selecting the topic derived from the parent and sensor names."""

    def __init__(self, cfg: ImuCfg, bus: MessageBus):
        """Initializes the Imu sensor.

        Args:
            cfg: The configuration parameters.
            bus: The message bus the sensor communicates on.
        """
        # initialize base class
        super().__init__(cfg, bus)
        # guards the inbox, the finite-difference state and the output
        # note: re-entrant so that subscribers of the output may query the sensor from the publishing thread
        self._mutex = threading.RLock()
        self._link_data: MessageBuffer[LinkData] = MessageBuffer(self.cfg.inbox_length)
        self._discovery = LinkDiscovery()
        self._is_finalized = False
        self._parent_body: RigidBody | None = None
        self._pub: Publisher | None = None
        self._request_pub: Publisher | None = None
        self._response_sub: Subscriber | None = None
        self._link_sub: Subscriber | None = None
        # reference and finite-difference state (valid after load)
        self._device = "cpu"
        self._reference_pos_w: torch.Tensor | None = None
        self._reference_quat_w: torch.Tensor | None = None
        self._last_lin_vel_w = torch.zeros(3)
        self._last_measurement_time: float | None = None
        self._raw_lin_acc_b = torch.zeros(3)
        self._data: ImuData | None = None

    def __str__(self) -> str:
        """Returns: A string containing information about the instance."""
        return (
            f"Imu sensor '{self.name}' @ '{self.parent_name}': \n"
            f"\ttopic             : {self._topic}\n"
            f"\tupdate period (s) : {self.cfg.update_period}\n"
            f"\tactive            : {self._is_active}\n"
            f"\tlink data topic   : {self._link_sub.topic if self._link_sub is not None else None}\n"
            f"\tinbox             : {len(self._link_data)}/{self._link_data.max_length}\n"
        )

    """
    Properties
    """

    @property
    def data(self) -> ImuData | None:
        """The latest reading. None before the sensor is loaded."""
        return self._data

    @property
    def orientation(self) -> torch.Tensor:
        """Orientation (w, x, y, z) of the latest reading relative to the reference pose."""
        return self._latest().orientation.clone()

    @property
    def angular_velocity(self) -> torch.Tensor:
        """Angular velocity of the latest reading in the IMU frame."""
        return self._latest().angular_velocity.clone()

    @property
    def linear_acceleration(self) -> torch.Tensor:
        """Linear acceleration of the latest reading in the IMU frame."""
        return self._latest().linear_acceleration.clone()

    @property
    def reference_pose(self) -> tuple[torch.Tensor, torch.Tensor]:
        """Position and orientation (w, x, y, z) of the reference pose in the world frame.

        Raises:
            RuntimeError: If the sensor is not loaded.
        """
        with self._mutex:
            if self._reference_quat_w is None:
                raise RuntimeError(f"Imu sensor '{self.name}' has no reference pose. Load the sensor first.")
            return self._reference_pos_w.clone(), self._reference_quat_w.clone()

    @property
    def velocity_baseline(self) -> tuple[float | None, torch.Tensor]:
        """Timestamp and world-frame velocity used as the previous sample of the finite difference.

        The timestamp is None until the first update.
        """
        with self._mutex:
            return self._last_measurement_time, self._last_lin_vel_w.clone()

    @property
    def link_data(self) -> list[LinkData]:
        """Snapshot of the buffered link data, oldest first."""
        with self._mutex:
            return list(self._link_data)

    @property
    def num_dropped_link_data(self) -> int:
        """Number of link data messages evicted because the inbox was full."""
        with self._mutex:
            return self._link_data.num_dropped

    @property
    def discovery(self) -> LinkDiscovery:
        return self._discovery

    """
    Operations
    """

    def set_reference_pose(self):
        """Makes the current pose of the sensor the reference of the reported orientation.

        Raises:
            RuntimeError: If the sensor is not attached to a body yet.
        """
        if self._parent_body is None:
            raise RuntimeError(f"Imu sensor '{self.name}' has no parent body. Load the sensor first.")
        body_pos_w, body_quat_w = self._parent_body.get_world_pose()
        pos_w, quat_w = math_utils.combine_frame_transforms(
            body_pos_w.to(self._device), body_quat_w.to(self._device), self._offset_pos_b, self._offset_quat_b
        )
        with self._mutex:
            self._reference_pos_w = pos_w
            self._reference_quat_w = quat_w
        logger.debug(f"Imu sensor '{self.name}' reference orientation set to {quat_w.tolist()}.")

    def push_link_data(self, msg: LinkData):
        """Stores incoming link data. Messages received while the sensor is inactive are discarded.

        Args:
            msg: The link data message.
        """
        with self._mutex:
            if self._is_active:
                self._link_data.push(msg)

    def reset(self):
        """Resets the update clock, empties the inbox and restarts the finite difference.

        The reference pose is kept. Use :meth:`set_reference_pose` to re-establish it.
        """
        super().reset()
        with self._mutex:
            self._link_data.clear()
            # the next update seeds the velocity baseline again
            self._last_measurement_time = None
            self._raw_lin_acc_b = torch.zeros(3, device=self._device)

    def fini(self):
        with self._mutex:
            super().fini()
            self._is_finalized = True
            # forget the outstanding request so that a late response is ignored
            self._discovery.cancel()
            self._response_sub = None
            self._link_sub = None

    """
    Implementation.
    """

    def _load_impl(self):
        """Resolves the parent body, establishes the reference state and starts the link discovery.

        Raises:
            RuntimeError: If the parent entity does not exist or is not a rigid body.
        """
        entity = self._world.get_entity(self.parent_name)
        if entity is None:
            raise RuntimeError(f"Imu sensor '{self.name}' has invalid parent '{self.parent_name}'. Entity not found.")
        if not isinstance(entity, RigidBody):
            raise RuntimeError(
                f"Imu sensor '{self.name}' has invalid parent '{self.parent_name}'. Must be a rigid body (link),"
                f" received: {type(entity).__name__}."
            )
        self._parent_body = entity
        self._device = self._world.device

        # store sensor offset transformation
        self._offset_pos_b = torch.tensor(list(self.cfg.offset.pos), dtype=torch.float, device=self._device)
        self._offset_quat_b = math_utils.normalize(
            torch.tensor(list(self.cfg.offset.rot), dtype=torch.float, device=self._device).unsqueeze(0)
        ).squeeze(0)

        # reference frame and finite-difference state
        self.set_reference_pose()
        self._init_velocity_baseline()
        self._raw_lin_acc_b = torch.zeros(3, device=self._device)
        self._data = ImuData(
            entity_name=self.parent_name,
            stamp=0.0,
            orientation=math_utils.default_orientation(1, self._device).squeeze(0),
            angular_velocity=torch.zeros(3, device=self._device),
            linear_acceleration=torch.zeros(3, device=self._device),
        )

        # output
        self._topic = self.node.resolve(self._resolve_topic())
        self._pub = self.node.advertise(self._topic, ImuData)

        # ask for the link data of the parent
        self._request_pub = self.node.advertise("~/request", Request)
        self._response_sub = self._subscribe("~/response", self._on_response)
        request = self._discovery.request(LinkDiscovery.LINK_PUBLISH)
        self._request_pub.publish(request)

    def _init_velocity_baseline(self):
        """Stores the current velocity of the mount point as the previous sample of the finite difference.

        No timestamp is stored, so the first update only seeds the baseline. The velocity stored here is
        diagnostic only and is exposed through :attr:`velocity_baseline` until the first update replaces it.

        .. note::

            The sample clock does not start at zero. The first sample is therefore never differentiated
            against this velocity with a time step equal to its sample time, and a change of velocity
            between load and the first update is not reported as acceleration.
        """
        _, lin_vel_w = self._parent_body.get_world_linear_vel()
        with self._mutex:
            self._last_lin_vel_w = math_utils.quat_apply(self._reference_quat_w, lin_vel_w.to(self._device))
            self._last_measurement_time = None

    def _latest(self) -> ImuData:
        data = self._data
        if data is None:
            raise RuntimeError(f"Imu sensor '{self.name}' has no data. Load the sensor first.")
        return data

    def _resolve_topic(self) -> str:
        if self.cfg.topic != self.DEFAULT_TOPIC:
            return self.cfg.topic
        topic = f"~/{self.parent_name}/{self.name}/imu"
        return topic.replace("::", "/")

    def _on_response(self, msg: Response):
        """Subscribes to the link data once the discovery request is answered."""
        with self._mutex:
            request = self._discovery.resolve(msg)
            # a response racing with fini must not subscribe again
            if request is None or self._is_finalized:
                return
            link_topic = "~/" + self._parent_body.scoped_name.replace("::", "/")
            self._link_sub = self._subscribe(link_topic, self.push_link_data)
            # the exchange is complete, later responses are of no interest
            if self._response_sub is not None:
                self._response_sub.unsubscribe()
                self._response_sub = None
        logger.info(f"Imu sensor '{self.name}' receives link data on '{self.node.resolve(link_topic)}'.")

    def _update_impl(self):
        """Computes the reading from the current state of the parent body and publishes it."""
        with self._mutex:
            body = self._parent_body
            # obtain the velocity of the mount point and its sample time
            timestamp, lin_vel_w = body.get_world_linear_vel(self._offset_pos_b)
            lin_vel_w = lin_vel_w.to(self._device)
            # obtain the pose of the sensor
            body_pos_w, body_quat_w = body.get_world_pose()
            _, quat_w = math_utils.combine_frame_transforms(
                body_pos_w.to(self._device), body_quat_w.to(self._device), self._offset_pos_b, self._offset_quat_b
            )

            # orientation relative to the reference pose
            orientation = math_utils.quat_mul(quat_w, math_utils.quat_inv(self._reference_quat_w))
            # angular velocity in the sensor frame
            ang_vel_b = math_utils.quat_apply_inverse(quat_w, body.get_world_angular_vel().to(self._device))

            # numerical derivative
            if self._last_measurement_time is None:
                self._last_lin_vel_w = lin_vel_w
                self._last_measurement_time = timestamp
            else:
                dt = timestamp - self._last_measurement_time
                if dt > 0.0:
                    self._raw_lin_acc_b = math_utils.quat_apply_inverse(
                        quat_w, (lin_vel_w - self._last_lin_vel_w) / dt
                    )
                    self._last_lin_vel_w = lin_vel_w
                    self._last_measurement_time = timestamp
                else:
                    logger.debug(
                        f"Imu sensor '{self.name}': non-positive time step ({dt}s), keeping the previous acceleration."
                    )

            # an accelerometer measures the reaction to gravity
            gravity_b = math_utils.quat_apply_inverse(quat_w, self._world.get_gravity().to(self._device))
            lin_acc_b = self._raw_lin_acc_b - gravity_b

            self._data = ImuData(
                entity_name=self.parent_name,
                stamp=timestamp,
                orientation=orientation,
                angular_velocity=ang_vel_b,
                linear_acceleration=lin_acc_b,
            )
            if self._pub is not None:
                self._pub.publish(self._data)
