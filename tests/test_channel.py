import json
import math

import pytest

from rosbridge.channel import MessageKind, StreamConfig, TopicChannel, TopicSpec
from rosbridge.messages import MotionSample, PoseSample, Vector3


@pytest.fixture
def sent():
    return []


@pytest.fixture
def config():
    return StreamConfig()


def make_channel(sent, config, name="/phone_imu", kind=MessageKind.IMU, frame_id="phone"):
    return TopicChannel(TopicSpec(name, frame_id), kind, sent.append, config)


def frames(sent):
    return [json.loads(data) for data in sent]


def test_advertise_uses_current_name_and_type(sent, config):
    make_channel(sent, config).advertise()
    make_channel(sent, config, "/face_transform", MessageKind.TRANSFORM).advertise()
    assert frames(sent) == [
        {"op": "advertise", "topic": "/phone_imu", "type": "sensor_msgs/Imu"},
        {"op": "advertise", "topic": "/face_transform", "type": "geometry_msgs/Transform"},
    ]


def test_rename_advertises_new_name_only(sent, config):
    channel = make_channel(sent, config, name="/a")
    channel.set_name("/b")

    assert channel.name == "/b"
    assert frames(sent) == [{"op": "advertise", "topic": "/b", "type": "sensor_msgs/Imu"}]


def test_same_name_is_a_no_op(sent, config):
    channel = make_channel(sent, config, name="/a")
    channel.set_name("/a")
    assert sent == []


def test_frame_id_change_sends_nothing(sent, config):
    channel = make_channel(sent, config)
    channel.set_frame_id("imu_link")
    assert sent == []

    channel.publish_sample(MotionSample(timestamp=1.0))
    assert frames(sent)[0]["msg"]["header"]["frame_id"] == "imu_link"


def test_unadvertise(sent, config):
    make_channel(sent, config, name="/a").unadvertise()
    assert frames(sent) == [{"op": "unadvertise", "topic": "/a"}]


def test_empty_name_sends_nothing(sent, config):
    channel = make_channel(sent, config, name="")
    channel.advertise()
    channel.publish_sample(MotionSample(timestamp=1.0))
    assert sent == []


def test_publish_follows_options_at_encode_time(sent, config):
    channel = make_channel(sent, config)
    sample = MotionSample(
        timestamp=10.5,
        user_acceleration=Vector3(1.0, 0.0, 0.0),
        gravity=Vector3(0.0, 0.0, -1.0),
    )

    channel.publish_sample(sample)
    config.use_ros2 = True
    config.exclude_gravity = True
    channel.publish_sample(sample)

    ros1, ros2 = frames(sent)
    assert ros1["op"] == "publish" and ros1["topic"] == "/phone_imu"
    assert ros1["msg"]["header"]["stamp"] == {"sec": 10, "nsec": 500000000}
    assert ros1["msg"]["linear_acceleration"] == {"x": 1.0, "y": 0.0, "z": -1.0}
    assert ros2["msg"]["header"] == {"stamp": {"sec": 10, "nanosec": 500000000}, "frame_id": "phone"}
    assert ros2["msg"]["linear_acceleration"] == {"x": 1.0, "y": 0.0, "z": 0.0}


def test_publish_transform(sent, config):
    channel = make_channel(sent, config, "/face_transform", MessageKind.TRANSFORM)
    transform = [
        [1.0, 0.0, 0.0, 0.5],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, -0.5],
        [0.0, 0.0, 0.0, 1.0],
    ]
    channel.publish_sample(PoseSample(timestamp=1.0, transform=transform))

    msg = frames(sent)[0]["msg"]
    assert msg["translation"] == {"x": 0.5, "y": 0.0, "z": -0.5}
    assert msg["rotation"]["w"] == pytest.approx(1.0)


def test_non_finite_sample_is_dropped(sent, config):
    channel = make_channel(sent, config)
    channel.publish_sample(MotionSample(timestamp=1.0, angular_velocity=Vector3(math.nan, 0.0, 0.0)))
    channel.publish_sample(MotionSample(timestamp=2.0))
    assert len(sent) == 1
    assert frames(sent)[0]["msg"]["header"]["stamp"]["sec"] == 2


def test_mismatched_or_degenerate_samples_are_dropped(sent, config):
    imu = make_channel(sent, config)
    imu.publish_sample(PoseSample(timestamp=1.0, transform=[[0.0] * 4] * 4))

    face = make_channel(sent, config, "/face_transform", MessageKind.TRANSFORM)
    face.publish_sample(MotionSample(timestamp=1.0))
    face.publish_sample(PoseSample(timestamp=1.0, transform=[[0.0] * 4] * 4))

    assert sent == []
