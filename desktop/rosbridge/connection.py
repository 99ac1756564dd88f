"""
A single WebSocket session to a rosbridge server.

A Connection opens its socket once, reports every lifecycle change to the one
observer attached to it, and never retries. Once disconnected it stays
disconnected; the supervisor replaces it with a fresh instance.
"""

import asyncio
import enum
import json
import logging
from dataclasses import dataclass
from typing import Callable, Optional

import websockets
from websockets.exceptions import WebSocketException

from .constants import OP_STATUS
from .endpoint import Endpoint
from .errors import TransportError

logger = logging.getLogger(__name__)

# Seconds allowed for the opening handshake before the attempt fails
DEFAULT_OPEN_TIMEOUT = 10.0


class ConnectionStatus(enum.Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class ConnectionState:
    status: ConnectionStatus
    endpoint: Endpoint
    error: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    @property
    def is_stopped(self) -> bool:
        return self.status is ConnectionStatus.DISCONNECTED

    def to_dict(self) -> dict:
        return {"status": self.status.value, "url": self.endpoint.url, "error": self.error}


StateObserver = Callable[["Connection", ConnectionState], None]


class Connection:
    """
    Wrapper around one rosbridge WebSocket.

    Lifecycle: IDLE -> CONNECTING -> CONNECTED -> DISCONNECTED. A failed
    handshake goes straight from CONNECTING to DISCONNECTED. Frames passed to
    ``send`` while not CONNECTED are dropped.
    """

    def __init__(
        self,
        endpoint: Endpoint,
        on_state_change: Optional[StateObserver] = None,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT
    ):
        """
        Initialize the connection without touching the network.

        Args:
            endpoint: Address of the rosbridge server
            on_state_change: Callback invoked with (connection, state) on every change
            open_timeout: Seconds allowed for the opening handshake
        """
        self.endpoint = endpoint
        self.open_timeout = open_timeout
        self._state = ConnectionState(ConnectionStatus.IDLE, endpoint)
        self._on_state_change = on_state_change
        self._task: Optional[asyncio.Task] = None
        self._outbox: Optional[asyncio.Queue] = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    def detach(self) -> None:
        """Stop reporting state changes to the observer."""
        self._on_state_change = None

    def open(self) -> None:
        """
        Start connecting in the background.

        Must be called from the event loop that owns this connection. Calling
        it again after the first time does nothing.
        """
        if self._state.status is not ConnectionStatus.IDLE:
            return
        self._set_state(ConnectionStatus.CONNECTING)
        self._task = asyncio.get_running_loop().create_task(self._run())

    def send(self, data: bytes) -> None:
        """Queue a frame for delivery; silently dropped unless connected."""
        if not self._state.is_connected or self._outbox is None:
            logger.debug("Dropping %d byte frame, %s is %s",
                         len(data), self.endpoint, self._state.status.value)
            return
        self._outbox.put_nowait(data)

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the socket."""
        outbox = self._outbox
        if outbox is not None:
            await outbox.join()

    def discard(self) -> None:
        """
        Detach the observer and close the socket without waiting.

        Frames still queued may or may not reach the server.
        """
        self.detach()
        if self._task is not None and not self._task.done():
            self._task.cancel()

    def _set_state(self, status: ConnectionStatus, error: Optional[str] = None) -> None:
        self._state = ConnectionState(status, self.endpoint, error)
        observer = self._on_state_change
        if observer is not None:
            observer(self, self._state)

    async def _run(self) -> None:
        error: Optional[TransportError] = None
        try:
            async with websockets.connect(self.endpoint.url, open_timeout=self.open_timeout) as websocket:
                self._outbox = asyncio.Queue()
                logger.info("WebSocket connected to %s", self.endpoint)
                self._set_state(ConnectionStatus.CONNECTED)

                writer = asyncio.create_task(self._write_frames(websocket, self._outbox))
                try:
                    await self._read_frames(websocket)
                finally:
                    writer.cancel()
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            error = TransportError(self.endpoint.url, str(e) or type(e).__name__)
            logger.warning("WebSocket error: %s", error)
        except Exception as e:
            error = TransportError(self.endpoint.url, f"unexpected {type(e).__name__}: {e}")
            logger.exception("Unexpected error on connection to %s", self.endpoint)
        finally:
            self._outbox = None
            self._set_state(ConnectionStatus.DISCONNECTED, str(error) if error else None)
            logger.info("WebSocket disconnected from %s", self.endpoint)

    async def _write_frames(self, websocket, outbox: asyncio.Queue) -> None:
        try:
            while True:
                data = await outbox.get()
                try:
                    # rosbridge expects JSON in text frames
                    await websocket.send(data.decode("utf-8"))
                finally:
                    outbox.task_done()
        except (OSError, WebSocketException) as e:
            # The reader sees the same closure and reports it
            logger.debug("Stopped sending to %s: %s", self.endpoint, e)

    async def _read_frames(self, websocket) -> None:
        async for message in websocket:
            if isinstance(message, (bytes, bytearray)):
                logger.debug("Ignoring %d byte binary frame from %s", len(message), self.endpoint)
                continue
            self._handle_text_message(message)

    def _handle_text_message(self, message: str) -> None:
        """Log rosbridge status reports; other server frames are not used."""
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.debug("Non-JSON frame from %s: %s", self.endpoint, e)
            return

        if not isinstance(data, dict) or data.get("op") != OP_STATUS:
            logger.debug("Protocol message from %s: %s", self.endpoint, data)
            return

        level = data.get("level", "info")
        if level in ("error", "warning"):
            logger.warning("rosbridge %s: %s", level, data.get("msg"))
        else:
            logger.info("rosbridge %s: %s", level, data.get("msg"))
