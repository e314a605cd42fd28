# Copyright (c) 2022-2025, The Isaac Lab Project Developers (https://github.com/isaac-sim/IsaacLab/blob/main/CONTRIBUTORS.md).
# All rights reserved.
#
# SPDX-License-Identifier: BSD-3-Clause

import math
import threading
import torch

import pytest

from rigid_imu.physics import KinematicRigidBody, KinematicWorld
from rigid_imu.sensors import Imu, ImuCfg, ImuData
from rigid_imu.transport import LinkData, MessageBus, Node, Request, Response

# gravity of the test world
GRAVITY = (0.0, 0.0, -9.8)

# roll of 90 degrees: the body y-axis points along the world z-axis
ROLL_90 = (math.cos(math.pi / 4), math.sin(math.pi / 4), 0.0, 0.0)
# pitch of 90 degrees: the body x-axis points down
PITCH_90 = (math.cos(math.pi / 4), 0.0, math.sin(math.pi / 4), 0.0)
# yaw of 90 degrees: the body x-axis points along the world y-axis
YAW_90 = (math.cos(math.pi / 4), 0.0, 0.0, math.sin(math.pi / 4))


class SimServer:
    """Stand-in for the simulation server answering link publish requests."""

    def __init__(self, bus: MessageBus, auto_reply: bool = True):
        self.node = Node(bus, "default")
        self.auto_reply = auto_reply
        self.requests: list[Request] = []
        self._request_sub = self.node.subscribe("~/request", self._on_request)
        self._response_pub = self.node.advertise("~/response", Response)
        self._link_pub = self.node.advertise("~/robot/base_link", LinkData)

    def _on_request(self, msg: Request):
        self.requests.append(msg)
        if self.auto_reply:
            self.reply(msg.id)

    def reply(self, request_id: int | None, request: str = "link_publish"):
        self._response_pub.publish(Response(id=request_id, request=request))

    def publish_link_data(self, stamp: float):
        self._link_pub.publish(
            LinkData(name="robot::base_link", stamp=stamp, linear_velocity=torch.zeros(3), angular_velocity=torch.zeros(3))
        )


@pytest.fixture
def world():
    """Create a world with a single body at rest."""
    world = KinematicWorld(name="default", gravity=GRAVITY)
    world.add_entity(KinematicRigidBody("robot::base_link"))
    return world


@pytest.fixture
def body(world):
    return world.get_entity("robot::base_link")


@pytest.fixture
def bus():
    """Create a message bus for testing."""
    return MessageBus()


@pytest.fixture
def server(bus):
    return SimServer(bus)


@pytest.fixture
def imu(world, bus, server):
    """Create a loaded and active IMU attached to the base link."""
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()
    yield imu
    imu.fini()


def _step(body: KinematicRigidBody, imu: Imu, sim_time: float):
    """Moves the sample time of the body and updates the sensor."""
    body.set_sim_time(sim_time)
    assert imu.update(0.1)


"""
Load and life cycle.
"""


def test_load(imu, body, server):
    """Test the state of the sensor after loading."""
    assert imu.is_loaded
    assert imu.is_active
    assert imu.topic == "/default/robot/base_link/imu/imu"
    assert isinstance(imu.data, ImuData)
    assert imu.data.entity_name == "robot::base_link"
    torch.testing.assert_close(imu.orientation, torch.tensor([1.0, 0.0, 0.0, 0.0]))
    torch.testing.assert_close(imu.linear_acceleration, torch.zeros(3))
    # a single link publish request was sent
    assert len(server.requests) == 1
    assert server.requests[0].request == "link_publish"


def test_accessors_before_load(bus):
    """Test that the readings are unavailable before loading."""
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    assert imu.data is None
    assert imu.topic is None
    with pytest.raises(RuntimeError):
        imu.orientation
    with pytest.raises(RuntimeError):
        imu.reference_pose
    with pytest.raises(RuntimeError):
        imu.set_reference_pose()
    with pytest.raises(RuntimeError):
        imu.set_active(True)


def test_invalid_parent(world, bus):
    """Test that the sensor cannot be attached to a missing entity."""
    imu = Imu(ImuCfg(parent_name="robot::unknown_link"), bus)
    with pytest.raises(RuntimeError):
        imu.load(world)
    assert not imu.is_loaded
    with pytest.raises(RuntimeError):
        imu.set_active(True)


def test_parent_not_a_rigid_body(world, bus):
    """Test that the sensor cannot be attached to an entity that is not a link."""
    world.add_entity(object(), name="robot::joint")
    imu = Imu(ImuCfg(parent_name="robot::joint"), bus)
    with pytest.raises(RuntimeError):
        imu.load(world)
    assert not imu.is_loaded


def test_custom_topic(world, bus, server):
    """Test publishing on a configured topic."""
    imu = Imu(ImuCfg(parent_name="robot::base_link", topic="~/sensors/imu"), bus)
    imu.load(world)
    assert imu.topic == "/default/sensors/imu"

    received = []
    bus.subscribe("/default/sensors/imu", received.append)
    imu.init()
    imu.update(0.01)
    assert len(received) == 1


def test_publish_every_update(imu, bus, body):
    """Test that each computation publishes a new reading."""
    received = []
    bus.subscribe(imu.topic, received.append)
    for i in range(1, 4):
        _step(body, imu, 0.1 * i)

    assert len(received) == 3
    assert all(isinstance(msg, ImuData) for msg in received)
    assert [msg.stamp for msg in received] == pytest.approx([0.1, 0.2, 0.3])
    # every reading is a distinct object
    assert received[0] is not received[1]
    assert received[-1] is imu.data


def test_inactive_update(imu, bus):
    """Test that an inactive sensor neither computes nor publishes."""
    received = []
    bus.subscribe(imu.topic, received.append)
    imu.set_active(False)
    assert imu.update(0.01) is False
    assert received == []


def test_subscriber_can_query_sensor(imu, bus, body):
    """Test that output subscribers may read the sensor while it publishes."""
    baselines = []
    bus.subscribe(imu.topic, lambda msg: baselines.append(imu.velocity_baseline))
    _step(body, imu, 0.1)
    assert baselines[0][0] == pytest.approx(0.1)


"""
Orientation and angular velocity.
"""


def test_orientation_at_reference(imu):
    """Test that the sensor reads identity at its reference pose."""
    imu.update(0.01)
    torch.testing.assert_close(imu.orientation, torch.tensor([1.0, 0.0, 0.0, 0.0]))


def test_orientation_relative_to_reference(world, bus, server):
    """Test that the orientation is reported relative to the pose at load time."""
    body = KinematicRigidBody("robot::arm_link", rot=YAW_90)
    world.add_entity(body)
    imu = Imu(ImuCfg(parent_name="robot::arm_link"), bus)
    imu.load(world)
    imu.init()

    imu.update(0.01)
    torch.testing.assert_close(imu.orientation, torch.tensor([1.0, 0.0, 0.0, 0.0]), atol=1e-6, rtol=1e-6)
    _, ref_quat = imu.reference_pose
    torch.testing.assert_close(ref_quat, torch.tensor(YAW_90), atol=1e-6, rtol=1e-6)

    # rotate back to the world orientation
    body.set_world_pose((0.0, 0.0, 0.0), (1.0, 0.0, 0.0, 0.0))
    imu.update(0.01)
    expected = torch.tensor([math.cos(math.pi / 4), 0.0, 0.0, -math.sin(math.pi / 4)])
    torch.testing.assert_close(imu.orientation, expected, atol=1e-6, rtol=1e-6)


def test_set_reference_pose(imu, body):
    """Test re-establishing the reference at the current pose."""
    body.set_world_pose((0.0, 0.0, 0.0), ROLL_90)
    imu.update(0.01)
    torch.testing.assert_close(imu.orientation, torch.tensor(ROLL_90), atol=1e-6, rtol=1e-6)

    imu.set_reference_pose()
    imu.update(0.01)
    torch.testing.assert_close(imu.orientation, torch.tensor([1.0, 0.0, 0.0, 0.0]), atol=1e-6, rtol=1e-6)


def test_angular_velocity(imu, body):
    """Test that the angular velocity is expressed in the sensor frame."""
    body.set_world_pose((0.0, 0.0, 0.0), ROLL_90)
    body.set_world_velocity((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    imu.update(0.01)
    torch.testing.assert_close(imu.angular_velocity, torch.tensor([0.0, 1.0, 0.0]), atol=1e-6, rtol=1e-6)


def test_angular_velocity_with_offset(world, bus, server, body):
    """Test that the mounting rotation is taken into account."""
    cfg = ImuCfg(parent_name="robot::base_link")
    cfg.offset.rot = YAW_90
    imu = Imu(cfg, bus)
    imu.load(world)
    imu.init()

    body.set_world_velocity((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
    imu.update(0.01)
    torch.testing.assert_close(imu.orientation, torch.tensor([1.0, 0.0, 0.0, 0.0]), atol=1e-6, rtol=1e-6)
    torch.testing.assert_close(imu.angular_velocity, torch.tensor([0.0, -1.0, 0.0]), atol=1e-6, rtol=1e-6)


"""
Linear acceleration.
"""


def test_gravity_at_rest(imu, body):
    """Test that a sensor at rest reads the reaction to gravity."""
    for i in range(1, 4):
        _step(body, imu, 0.1 * i)
        torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))


@pytest.mark.parametrize(
    "rot, expected",
    [
        (ROLL_90, (0.0, 9.8, 0.0)),
        (PITCH_90, (-9.8, 0.0, 0.0)),
        (YAW_90, (0.0, 0.0, 9.8)),
    ],
)
def test_gravity_rotated(imu, body, rot, expected):
    """Test that gravity is projected into the sensor frame."""
    body.set_world_pose((0.0, 0.0, 0.0), rot)
    _step(body, imu, 0.1)
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor(expected), atol=1e-5, rtol=1e-5)


def test_constant_velocity_without_gravity(imu, world, body):
    """Test that constant motion produces no acceleration."""
    world.set_gravity((0.0, 0.0, 0.0))
    body.set_world_velocity((1.0, 0.0, 0.0))
    _step(body, imu, 0.1)
    _step(body, imu, 0.2)
    torch.testing.assert_close(imu.linear_acceleration, torch.zeros(3))


def test_first_sample_seeds_baseline(imu, body):
    """Test that the first update only stores the velocity baseline."""
    stamp, _ = imu.velocity_baseline
    assert stamp is None

    body.set_world_velocity((3.0, 0.0, 0.0))
    _step(body, imu, 0.1)
    stamp, lin_vel = imu.velocity_baseline
    assert stamp == pytest.approx(0.1)
    torch.testing.assert_close(lin_vel, torch.tensor([3.0, 0.0, 0.0]))
    # no acceleration yet, only gravity
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))


def test_load_baseline_is_diagnostic(world, bus, server):
    """Test that the velocity at load time is reported but replaced by the first update."""
    body = world.get_entity("robot::base_link")
    body.set_world_velocity((2.0, 0.0, 0.0))
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()

    stamp, lin_vel = imu.velocity_baseline
    assert stamp is None
    torch.testing.assert_close(lin_vel, torch.tensor([2.0, 0.0, 0.0]))

    # the change of velocity since load is not differentiated
    body.set_world_velocity((3.0, 0.0, 0.0))
    _step(body, imu, 0.1)
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))
    _, lin_vel = imu.velocity_baseline
    torch.testing.assert_close(lin_vel, torch.tensor([3.0, 0.0, 0.0]))
    imu.fini()


def test_finite_difference(imu, body):
    """Test the acceleration from two velocity samples."""
    _step(body, imu, 0.1)
    body.set_world_velocity((1.0, 0.0, 0.0))
    _step(body, imu, 0.2)

    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([10.0, 0.0, 9.8]), atol=1e-4, rtol=1e-4)
    stamp, lin_vel = imu.velocity_baseline
    assert stamp == pytest.approx(0.2)
    torch.testing.assert_close(lin_vel, torch.tensor([1.0, 0.0, 0.0]))


def test_stalled_clock_keeps_acceleration(imu, body):
    """Test that a step without time advance keeps the previous estimate but refreshes gravity."""
    _step(body, imu, 0.1)
    body.set_world_velocity((1.0, 0.0, 0.0))
    _step(body, imu, 0.2)

    # same sample time, new attitude and velocity
    body.set_world_pose((0.0, 0.0, 0.0), ROLL_90)
    body.set_world_velocity((5.0, 0.0, 0.0))
    _step(body, imu, 0.2)

    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([10.0, 9.8, 0.0]), atol=1e-4, rtol=1e-4)
    stamp, lin_vel = imu.velocity_baseline
    assert stamp == pytest.approx(0.2)
    torch.testing.assert_close(lin_vel, torch.tensor([1.0, 0.0, 0.0]))


def test_clock_going_backwards(imu, body):
    """Test that samples older than the baseline are not differentiated."""
    _step(body, imu, 0.2)
    body.set_world_velocity((1.0, 0.0, 0.0))
    _step(body, imu, 0.1)

    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))
    stamp, _ = imu.velocity_baseline
    assert stamp == pytest.approx(0.2)


def test_gravity_queried_every_step(imu, world, body, mocker):
    """Test that the gravity term is recomputed even when the clock stalls."""
    spy = mocker.spy(world, "get_gravity")
    for _ in range(3):
        _step(body, imu, 0.1)
    assert spy.call_count == 3


def test_centripetal_acceleration(world, bus, server, body):
    """Test a sensor mounted away from the rotation axis."""
    cfg = ImuCfg(parent_name="robot::base_link")
    cfg.offset.pos = (1.0, 0.0, 0.0)
    imu = Imu(cfg, bus)
    imu.load(world)
    imu.init()

    body.set_world_velocity((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))
    for _ in range(100):
        world.step(1e-3)
        imu.update(1e-3)

    # the centripetal acceleration points from the mount point to the axis
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([-1.0, 0.0, 9.8]), atol=1e-2, rtol=1e-2)
    torch.testing.assert_close(imu.angular_velocity, torch.tensor([0.0, 0.0, 1.0]), atol=1e-5, rtol=1e-5)


def test_reset(imu, body, server):
    """Test that a reset restarts the finite difference and empties the inbox."""
    _step(body, imu, 0.1)
    body.set_world_velocity((1.0, 0.0, 0.0))
    _step(body, imu, 0.2)
    server.publish_link_data(0.2)
    assert len(imu.link_data) == 1

    imu.reset()
    assert imu.link_data == []
    stamp, _ = imu.velocity_baseline
    assert stamp is None

    # the next update seeds the baseline again
    _step(body, imu, 0.3)
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))


"""
Link data inbox.
"""


def test_link_data_received(imu, server):
    """Test that link data flows into the inbox after the handshake."""
    server.publish_link_data(0.1)
    server.publish_link_data(0.2)
    assert [msg.stamp for msg in imu.link_data] == [0.1, 0.2]


def test_inbox_drops_oldest(imu):
    """Test that the inbox keeps the most recent messages."""
    for i in range(150):
        imu.push_link_data(LinkData(name="robot::base_link", stamp=float(i)))

    assert [msg.stamp for msg in imu.link_data] == [float(i) for i in range(50, 150)]
    assert imu.num_dropped_link_data == 50


def test_inbox_custom_length(world, bus, server):
    """Test the configured capacity of the inbox."""
    imu = Imu(ImuCfg(parent_name="robot::base_link", inbox_length=3), bus)
    imu.load(world)
    imu.init()
    for i in range(5):
        imu.push_link_data(LinkData(name="robot::base_link", stamp=float(i)))
    assert [msg.stamp for msg in imu.link_data] == [2.0, 3.0, 4.0]


def test_push_while_inactive(world, bus, server):
    """Test that messages are discarded while the sensor is inactive."""
    imu = Imu(ImuCfg(parent_name="robot::base_link", always_on=False), bus)
    imu.load(world)
    imu.init()
    server.publish_link_data(0.1)
    imu.push_link_data(LinkData(name="robot::base_link", stamp=0.2))
    assert imu.link_data == []

    imu.set_active(True)
    server.publish_link_data(0.3)
    assert [msg.stamp for msg in imu.link_data] == [0.3]

    imu.set_active(False)
    imu.push_link_data(LinkData(name="robot::base_link", stamp=0.4))
    assert [msg.stamp for msg in imu.link_data] == [0.3]


def test_concurrent_push(imu, body):
    """Test pushing from another thread while the sensor updates."""
    num_msgs = 1000

    def producer():
        for i in range(num_msgs):
            imu.push_link_data(LinkData(name="robot::base_link", stamp=float(i)))

    thread = threading.Thread(target=producer)
    thread.start()
    for i in range(1, 51):
        _step(body, imu, 0.01 * i)
    thread.join()

    stamps = [msg.stamp for msg in imu.link_data]
    assert stamps == [float(i) for i in range(num_msgs - 100, num_msgs)]
    assert imu.num_dropped_link_data == num_msgs - 100


"""
Link discovery.
"""


def test_handshake(imu, bus, server):
    """Test that the answered request subscribes the sensor to the link data."""
    assert bus.num_subscribers("/default/robot/base_link") == 1
    # the response subscription is released once the exchange completes
    assert bus.num_subscribers("/default/response") == 0
    assert not imu.discovery.is_pending
    assert imu.discovery.num_resolved == 1


def test_duplicate_responses(world, bus):
    """Test that the sensor subscribes to the link data at most once."""
    server = SimServer(bus, auto_reply=False)
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    assert bus.num_subscribers("/default/robot/base_link") == 0
    assert imu.discovery.is_pending

    request_id = server.requests[0].id
    server.reply(request_id)
    server.reply(request_id)
    assert bus.num_subscribers("/default/robot/base_link") == 1


def test_duplicate_responses_delivered(world, bus, server):
    """Test that a duplicated response reaching the sensor is ignored."""
    server.auto_reply = False
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    request_id = server.requests[0].id

    # two subscriptions of the response topic see the same message
    bus.subscribe("/default/response", imu._on_response)
    server.reply(request_id)
    assert bus.num_subscribers("/default/robot/base_link") == 1
    assert imu.discovery.num_resolved == 1


def test_unrelated_responses(world, bus):
    """Test that responses to other requests are ignored."""
    server = SimServer(bus, auto_reply=False)
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    request_id = server.requests[0].id

    server.reply(request_id + 1000)
    server.reply(None)
    assert bus.num_subscribers("/default/robot/base_link") == 0
    assert imu.discovery.is_pending

    server.reply(request_id)
    assert bus.num_subscribers("/default/robot/base_link") == 1


def test_no_response(world, bus):
    """Test that the sensor still measures when the request is never answered."""
    SimServer(bus, auto_reply=False)
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()
    assert imu.update(0.01)
    torch.testing.assert_close(imu.linear_acceleration, torch.tensor([0.0, 0.0, 9.8]))
    assert imu.link_data == []


def test_fini(world, bus, server):
    """Test that fini releases the subscriptions and ignores late responses."""
    server.auto_reply = False
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()
    request_id = server.requests[0].id

    imu.fini()
    assert not imu.is_active
    assert bus.num_subscribers("/default/response") == 0
    server.reply(request_id)
    assert bus.num_subscribers("/default/robot/base_link") == 0
    assert not imu.discovery.is_pending


def test_fini_while_resolving_response(world, bus, server, mocker):
    """Test that a response handled while the sensor is finalized does not subscribe to the link data."""
    server.auto_reply = False
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()
    request_id = server.requests[0].id

    resolve = imu.discovery.resolve

    def _resolve_then_fini(msg):
        request = resolve(msg)
        imu.fini()
        return request

    mocker.patch.object(imu.discovery, "resolve", side_effect=_resolve_then_fini)
    server.reply(request_id)
    assert imu.discovery.resolve.call_count == 1
    assert bus.num_subscribers("/default/robot/base_link") == 0
    assert bus.num_subscribers("/default/response") == 0


def test_fini_waits_for_response_handling(world, bus, server):
    """Test that fini from another thread waits until the response is handled, then releases everything."""
    server.auto_reply = False
    imu = Imu(ImuCfg(parent_name="robot::base_link"), bus)
    imu.load(world)
    imu.init()
    request_id = server.requests[0].id

    with imu._mutex:
        thread = threading.Thread(target=imu.fini)
        thread.start()
        thread.join(timeout=0.2)
        # fini is blocked by the response handling
        assert thread.is_alive()
        server.reply(request_id)
    thread.join(timeout=5.0)
    assert not thread.is_alive()
    assert not imu.is_active
    assert bus.num_subscribers("/default/robot/base_link") == 0
