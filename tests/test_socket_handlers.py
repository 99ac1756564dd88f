from unittest.mock import Mock

import pytest
from flask import Flask
from flask_socketio import SocketIO

from features.stream.socket_handlers import register_socket_handlers
from rosbridge import InvalidEndpoint, RosbridgeStreamer
from rosbridge.messages import MotionSample, PoseSample


@pytest.fixture
def streamer():
    streamer = Mock(spec=RosbridgeStreamer)
    streamer.status.return_value = {"connection": {"status": "connected"}}
    return streamer


@pytest.fixture
def client(streamer):
    app = Flask(__name__)
    socketio = SocketIO(app)
    register_socket_handlers(socketio, streamer)
    return socketio.test_client(app)


def received_events(client, name):
    return [event["args"] for event in client.get_received() if event["name"] == name]


def test_set_endpoint(client, streamer):
    client.emit("set_endpoint", {"url": "ws://10.0.0.5:9090"})
    streamer.set_endpoint.assert_called_once_with("ws://10.0.0.5:9090")


def test_set_endpoint_reports_rejection(client, streamer):
    streamer.set_endpoint.side_effect = InvalidEndpoint("not canonical")
    client.emit("set_endpoint", {"url": "ws://x?"})

    errors = received_events(client, "endpoint_error")
    assert errors == [[{"url": "ws://x?", "error": "not canonical"}]]


def test_set_topic_and_options(client, streamer):
    client.emit("set_topic", {"source": "phone", "name": "/b"})
    client.emit("set_options", {"use_ros2": True})

    streamer.set_topic.assert_called_once_with("phone", name="/b", frame_id=None)
    streamer.set_options.assert_called_once_with(exclude_gravity=None, use_ros2=True)


def test_unknown_topic_source_is_logged(client, streamer):
    streamer.set_topic.side_effect = ValueError("Unknown sample source 'elbow'")
    client.emit("set_topic", {"source": "elbow", "name": "/x"})
    assert received_events(client, "log")


def test_status(client):
    client.emit("check_stream_status")
    assert received_events(client, "stream_status") == [[{"connection": {"status": "connected"}}]]


def test_motion_events_are_parsed_and_submitted(client, streamer):
    client.emit("phone_motion", {"timestamp": 1.0})
    client.emit("headphone_motion", {"timestamp": 2.0})

    calls = streamer.submit_sample.call_args_list
    assert [c.args[0] for c in calls] == ["phone", "headphone"]
    assert all(isinstance(c.args[1], MotionSample) for c in calls)


def test_face_pose_is_submitted(client, streamer):
    rows = [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]]
    client.emit("face_pose", {"timestamp": 1.0, "transform": rows})

    source, sample = streamer.submit_sample.call_args.args
    assert source == "face"
    assert isinstance(sample, PoseSample)


def test_bad_samples_are_reported_not_submitted(client, streamer):
    client.emit("phone_motion", {"timestamp": "soon"})
    client.emit("face_pose", {"transform": []})

    streamer.submit_sample.assert_not_called()
    assert len(received_events(client, "log")) == 2


def test_events_without_payload_are_tolerated(client, streamer):
    client.emit("set_options")
    client.emit("set_topic")
    client.emit("phone_motion")
    client.emit("face_pose")

    streamer.set_options.assert_called_once_with(exclude_gravity=None, use_ros2=None)
    streamer.set_topic.assert_called_once_with("", name=None, frame_id=None)
    streamer.submit_sample.assert_not_called()
    assert len(received_events(client, "log")) == 2
