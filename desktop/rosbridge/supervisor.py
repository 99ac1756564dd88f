"""
Keeps one rosbridge connection alive.

The supervisor owns at most one Connection. A periodic health check replaces a
dead connection with a fresh one to the same endpoint, so a dropped server or
network is recovered within one check period without the caller noticing.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from .connection import Connection, ConnectionState, ConnectionStatus
from .endpoint import Endpoint

logger = logging.getLogger(__name__)

DEFAULT_HEALTH_CHECK_PERIOD = 5.0

# Checks a connection may spend in CONNECTING before it is treated as dead
DEFAULT_STUCK_CONNECTING_CHECKS = 3


@dataclass(frozen=True)
class SupervisorState:
    """Either no connection (``connection is None``) or the current connection's state."""
    connection: Optional[ConnectionState] = None

    @property
    def has_connection(self) -> bool:
        return self.connection is not None

    @property
    def is_connected(self) -> bool:
        return self.connection is not None and self.connection.is_connected

    def to_dict(self) -> dict:
        if self.connection is None:
            return {"status": "no_connection", "url": None, "error": None}
        return self.connection.to_dict()


ConnectionFactory = Callable[..., Connection]
SupervisorObserver = Callable[[SupervisorState], None]


class ConnectionSupervisor:
    """
    Owner of zero or one Connection.

    All methods must run on the event loop that owns the supervisor.
    Observers receive every state, possibly the same one more than once.
    """

    def __init__(
        self,
        health_check_period: float = DEFAULT_HEALTH_CHECK_PERIOD,
        stuck_connecting_checks: int = DEFAULT_STUCK_CONNECTING_CHECKS,
        connection_factory: ConnectionFactory = Connection
    ):
        """
        Initialize the supervisor with no connection.

        Args:
            health_check_period: Seconds between health checks
            stuck_connecting_checks: Consecutive checks in CONNECTING before a retry
            connection_factory: Callable building a Connection from
                (endpoint, on_state_change=...)
        """
        self.health_check_period = health_check_period
        self.stuck_connecting_checks = stuck_connecting_checks
        self._connection_factory = connection_factory
        self._connection: Optional[Connection] = None
        self._state = SupervisorState()
        self._observers: List[SupervisorObserver] = []
        self._connecting_checks = 0
        self._timer_task: Optional[asyncio.Task] = None

    @property
    def state(self) -> SupervisorState:
        return self._state

    @property
    def endpoint(self) -> Optional[Endpoint]:
        return self._connection.endpoint if self._connection else None

    def subscribe(self, observer: SupervisorObserver) -> Callable[[], None]:
        """Register an observer and return a callable that removes it."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def start(self) -> None:
        """Start the periodic health check on the running event loop."""
        if self._timer_task is not None and not self._timer_task.done():
            return
        self._timer_task = asyncio.get_running_loop().create_task(self._health_check_loop())

    def close(self) -> None:
        """Stop the health check and discard the current connection."""
        if self._timer_task is not None:
            self._timer_task.cancel()
            self._timer_task = None
        if self._connection is not None:
            self._discard_connection()
            self._publish(SupervisorState())

    async def _health_check_loop(self) -> None:
        while True:
            self.health_check()
            await asyncio.sleep(self.health_check_period)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def set_endpoint(self, endpoint: Endpoint) -> None:
        """Connect to ``endpoint`` unless the current connection already targets it."""
        if self._connection is not None and self._connection.endpoint == endpoint:
            return
        logger.info("Switching rosbridge endpoint to %s", endpoint)
        self._replace_connection(endpoint)

    def health_check(self) -> None:
        """Replace the current connection if it has stopped or is stuck connecting."""
        connection = self._connection
        if connection is None:
            return

        status = connection.state.status
        if status is ConnectionStatus.CONNECTING:
            self._connecting_checks += 1
            if self._connecting_checks < self.stuck_connecting_checks:
                return
            logger.warning("Connection to %s stuck connecting, retrying", connection.endpoint)
        elif status is ConnectionStatus.DISCONNECTED:
            logger.info("Connection to %s is down, reconnecting", connection.endpoint)
        else:
            self._connecting_checks = 0
            return

        self._replace_connection(connection.endpoint)

    def send(self, data: bytes) -> None:
        """Send through the current connection, if any."""
        if self._connection is not None:
            self._connection.send(data)

    async def flush(self, timeout: float) -> None:
        """Wait up to ``timeout`` seconds for queued frames to reach the socket."""
        if self._connection is None:
            return
        try:
            await asyncio.wait_for(self._connection.flush(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Frames to %s still queued after %.1fs", self._connection.endpoint, timeout)

    def _replace_connection(self, endpoint: Endpoint) -> None:
        # Detach before discarding so the old connection cannot publish a
        # stale state after the new one has started.
        self._discard_connection()
        self._connecting_checks = 0

        connection = self._connection_factory(endpoint, on_state_change=self._on_connection_state)
        self._connection = connection
        self._publish(SupervisorState(connection.state))
        connection.open()

    def _discard_connection(self) -> None:
        connection = self._connection
        self._connection = None
        if connection is not None:
            connection.discard()

    def _on_connection_state(self, connection: Connection, state: ConnectionState) -> None:
        if connection is not self._connection:
            return
        self._publish(SupervisorState(state))

    def _publish(self, state: SupervisorState) -> None:
        self._state = state
        for observer in list(self._observers):
            observer(state)
