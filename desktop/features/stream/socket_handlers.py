"""
Streaming SocketIO event handlers.

This module handles WebSocket events for configuring the streamer and for
receiving sensor samples from the browser.
"""

from flask_socketio import SocketIO
from typing import Any, Dict, Optional

from config import SOURCE_FACE, SOURCE_HEADPHONE, SOURCE_PHONE
from rosbridge import InvalidEndpoint, RosbridgeStreamer
from utils.sample_parser import SampleParser


def register_socket_handlers(socketio: SocketIO, streamer: RosbridgeStreamer) -> None:
    """
    Register SocketIO event handlers for streaming.

    Args:
        socketio: Flask-SocketIO instance
        streamer: RosbridgeStreamer instance
    """

    def submit_motion(source: str, data: Optional[Dict[str, Any]]) -> None:
        try:
            sample = SampleParser.motion_from_payload(data)
        except ValueError as e:
            socketio.emit("log", f"⚠️ Bad {source} motion sample: {e}")
            return
        streamer.submit_sample(source, sample)

    @socketio.on("set_endpoint")
    def handle_set_endpoint(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle rosbridge address change from frontend.

        Args:
            data: Dictionary containing:
                - url: rosbridge WebSocket address (ws:// or wss://)
        """
        data = data or {}
        url = data.get("url", "")
        try:
            streamer.set_endpoint(url)
        except InvalidEndpoint as e:
            socketio.emit("endpoint_error", {"url": url, "error": str(e)})
            socketio.emit("log", f"⚠️ Rejected endpoint: {e}")

    @socketio.on("set_topic")
    def handle_set_topic(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle topic name / frame id change from frontend.

        Args:
            data: Dictionary containing:
                - source: "phone", "headphone" or "face"
                - name: New topic name (optional)
                - frame_id: New frame id (optional)
        """
        data = data or {}
        try:
            streamer.set_topic(data.get("source", ""), name=data.get("name"), frame_id=data.get("frame_id"))
        except ValueError as e:
            socketio.emit("log", f"⚠️ {e}")

    @socketio.on("set_options")
    def handle_set_options(data: Optional[Dict[str, Any]] = None) -> None:
        """
        Handle message option changes from frontend.

        Args:
            data: Dictionary containing (all optional):
                - exclude_gravity: Report user acceleration only
                - use_ros2: Send ROS2 message layouts
        """
        data = data or {}
        streamer.set_options(
            exclude_gravity=data.get("exclude_gravity"),
            use_ros2=data.get("use_ros2"),
        )

    @socketio.on("check_stream_status")
    def handle_check_stream_status() -> None:
        """
        Handle status check request from frontend.
        """
        socketio.emit("stream_status", streamer.status())

    @socketio.on("phone_motion")
    def handle_phone_motion(data: Optional[Dict[str, Any]] = None) -> None:
        submit_motion(SOURCE_PHONE, data)

    @socketio.on("headphone_motion")
    def handle_headphone_motion(data: Optional[Dict[str, Any]] = None) -> None:
        submit_motion(SOURCE_HEADPHONE, data)

    @socketio.on("face_pose")
    def handle_face_pose(data: Optional[Dict[str, Any]] = None) -> None:
        try:
            sample = SampleParser.pose_from_payload(data)
        except ValueError as e:
            socketio.emit("log", f"⚠️ Bad face pose sample: {e}")
            return
        streamer.submit_sample(SOURCE_FACE, sample)
