"""
This file sets up the streamer that pushes motion and pose samples to a
rosbridge server. It runs the connection supervisor and topic channels on a
dedicated asyncio loop, and gives the Flask side thread-safe entry points.
"""

import asyncio
import concurrent.futures
import logging
import threading
from typing import Any, Dict, Optional

from flask_socketio import SocketIO

from config import (
    DEFAULT_ROSBRIDGE_URL,
    DEFAULT_TOPICS,
    EXCLUDE_GRAVITY,
    HEALTH_CHECK_PERIOD_S,
    SHUTDOWN_FLUSH_TIMEOUT_S,
    STUCK_CONNECTING_CHECKS,
    USE_ROS2
)
from .channel import MessageKind, StreamConfig, TopicChannel, TopicSpec
from .coordinator import StreamCoordinator
from .endpoint import Endpoint
from .messages import Sample
from .supervisor import ConnectionSupervisor, SupervisorState

logger = logging.getLogger(__name__)


class RosbridgeStreamer:
    """
    Streams phone, headphone and face samples to a rosbridge server.

    Every method is safe to call from any thread. Work that touches the
    connection is handed to the streamer's own event loop.
    """

    def __init__(
        self,
        socketio_instance: Optional[SocketIO] = None,
        stream_config: Optional[StreamConfig] = None,
        endpoint_url: Optional[str] = DEFAULT_ROSBRIDGE_URL,
        health_check_period: float = HEALTH_CHECK_PERIOD_S
    ):
        """
        Initialize the streamer.

        Args:
            socketio_instance: Flask-SocketIO instance for emitting events to frontend
            stream_config: Gravity/ROS2 options shared by all channels
            endpoint_url: rosbridge address to connect to on start (None to wait)
            health_check_period: Seconds between connection health checks

        Raises:
            InvalidEndpoint: If endpoint_url is not a canonical ws/wss URL
        """
        self.socketio = socketio_instance
        self.config = stream_config or StreamConfig(exclude_gravity=EXCLUDE_GRAVITY, use_ros2=USE_ROS2)
        self.supervisor = ConnectionSupervisor(
            health_check_period=health_check_period,
            stuck_connecting_checks=STUCK_CONNECTING_CHECKS,
        )
        self.coordinator = StreamCoordinator(self.supervisor)
        for source, topic in DEFAULT_TOPICS.items():
            channel = TopicChannel(
                TopicSpec(topic["name"], topic["frame_id"]),
                MessageKind[topic["kind"]],
                self.supervisor.send,
                self.config,
            )
            self.coordinator.register(source, channel)

        self.connection_loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self._pending_endpoint = Endpoint(endpoint_url) if endpoint_url else None
        self._last_status: Optional[str] = None
        self.supervisor.subscribe(self._on_supervisor_state)

    def _emit_log(self, message: str) -> None:
        """Helper method to log and mirror a message to the frontend via SocketIO."""
        logger.info(message)
        if self.socketio:
            self.socketio.emit("log", message)

    def _emit_status(self) -> None:
        if self.socketio:
            self.socketio.emit("stream_status", self.status())

    # ------------------------------------------------------------------ #
    # Thread runner
    # ------------------------------------------------------------------ #
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run the streamer in a background thread with its own event loop."""
        if self.running:
            return
        self._ready.clear()
        self._thread = threading.Thread(target=self._run_loop, name="rosbridge-streamer", daemon=True)
        self._thread.start()
        self._ready.wait(timeout=5.0)

    def stop(self, timeout: float = 5.0) -> None:
        """Unadvertise all topics, close the connection and stop the loop thread."""
        loop = self.connection_loop
        if loop is None or not self.running:
            return
        future = asyncio.run_coroutine_threadsafe(self._shutdown(), loop)
        try:
            future.result(timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Streamer shutdown timed out after %.1fs", timeout)
        loop.call_soon_threadsafe(loop.stop)
        self._thread.join(timeout)

    def _run_loop(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self.connection_loop = loop
        try:
            loop.call_soon(self._on_loop_started)
            loop.run_forever()
        finally:
            self.connection_loop = None
            loop.close()
            self._emit_log("Streamer stopped")

    def _on_loop_started(self) -> None:
        self.supervisor.start()
        if self._pending_endpoint is not None:
            self.supervisor.set_endpoint(self._pending_endpoint)
            self._pending_endpoint = None
        self._ready.set()

    async def _shutdown(self) -> None:
        if self.supervisor.state.is_connected:
            for channel in self.coordinator.channels.values():
                channel.unadvertise()
            await self.supervisor.flush(SHUTDOWN_FLUSH_TIMEOUT_S)
        # Reconnect to the same address if the streamer is started again
        self._pending_endpoint = self.supervisor.endpoint
        self.supervisor.close()

    def _dispatch(self, callback, *args) -> None:
        """Run ``callback`` on the streamer loop, or inline before it starts."""
        loop = self.connection_loop
        if loop is not None and self.running:
            loop.call_soon_threadsafe(callback, *args)
        else:
            callback(*args)

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #
    def set_endpoint(self, url: str) -> Endpoint:
        """
        Point the streamer at a new rosbridge address.

        Args:
            url: ws:// or wss:// address, in canonical form

        Returns:
            The validated endpoint

        Raises:
            InvalidEndpoint: If the address is rejected; nothing changes
        """
        endpoint = Endpoint(url)
        if self.running:
            self._dispatch(self.supervisor.set_endpoint, endpoint)
        else:
            self._pending_endpoint = endpoint
        self._emit_log(f"rosbridge endpoint set to {endpoint}")
        return endpoint

    def channel(self, source: str) -> TopicChannel:
        """
        Return the channel fed by ``source``.

        Raises:
            ValueError: If no channel exists for the source
        """
        channel = self.coordinator.channels.get(source)
        if channel is None:
            raise ValueError(f"Unknown sample source {source!r}")
        return channel

    def set_topic(self, source: str, name: Optional[str] = None, frame_id: Optional[str] = None) -> None:
        """
        Change the topic name and/or frame id of one channel.

        Renaming advertises the new name; the old name is left advertised.
        """
        channel = self.channel(source)
        if frame_id is not None:
            self._dispatch(channel.set_frame_id, frame_id)
        if name is not None:
            self._dispatch(channel.set_name, name)

    def set_options(self, exclude_gravity: Optional[bool] = None, use_ros2: Optional[bool] = None) -> None:
        """Update the shared message options; they apply from the next sample."""
        if exclude_gravity is not None:
            self._dispatch(setattr, self.config, "exclude_gravity", bool(exclude_gravity))
        if use_ros2 is not None:
            self._dispatch(setattr, self.config, "use_ros2", bool(use_ros2))

    # ------------------------------------------------------------------ #
    # Streaming
    # ------------------------------------------------------------------ #
    def submit_sample(self, source: str, sample: Sample) -> None:
        """Publish one sample from ``source``; dropped while disconnected."""
        if not self.running:
            return
        self._dispatch(self.coordinator.handle_sample, source, sample)

    def status(self) -> Dict[str, Any]:
        """Snapshot of connection state, topics and options for the frontend."""
        return {
            "connection": self.supervisor.state.to_dict(),
            "topics": {
                source: {
                    "name": channel.name,
                    "frame_id": channel.frame_id,
                    "type": channel.msg_type,
                }
                for source, channel in self.coordinator.channels.items()
            },
            "exclude_gravity": self.config.exclude_gravity,
            "use_ros2": self.config.use_ros2,
        }

    def _on_supervisor_state(self, state: SupervisorState) -> None:
        status = state.to_dict()["status"]
        if status != self._last_status:
            self._last_status = status
            message = f"rosbridge connection: {status}"
            if state.connection is not None:
                message += f" ({state.connection.endpoint})"
                if state.connection.error:
                    message += f": {state.connection.error}"
            self._emit_log(message)
        self._emit_status()
