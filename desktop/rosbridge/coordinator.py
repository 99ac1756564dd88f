"""Routes sample events to topic channels and re-advertises them on reconnect."""

import logging
from typing import Callable, Dict, Optional

from .channel import TopicChannel
from .messages import Sample
from .supervisor import ConnectionSupervisor, SupervisorState

logger = logging.getLogger(__name__)


class StreamCoordinator:
    """
    Wiring between sample sources, channels and the connection supervisor.

    rosbridge forgets advertisements when a socket closes, so every time the
    supervisor moves into CONNECTED each registered channel advertises again.
    """

    def __init__(self, supervisor: ConnectionSupervisor):
        self.channels: Dict[str, TopicChannel] = {}
        self._was_connected = False
        self._unsubscribe: Optional[Callable[[], None]] = supervisor.subscribe(self._on_supervisor_state)

    def register(self, source: str, channel: TopicChannel) -> None:
        """Route samples from ``source`` to ``channel``."""
        self.channels[source] = channel

    def handle_sample(self, source: str, sample: Sample) -> None:
        channel = self.channels.get(source)
        if channel is None:
            logger.warning("No channel registered for sample source %r", source)
            return
        channel.publish_sample(sample)

    def advertise_all(self) -> None:
        for channel in self.channels.values():
            channel.advertise()

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_supervisor_state(self, state: SupervisorState) -> None:
        # Repeated CONNECTED notifications count as one transition
        connected = state.is_connected
        if connected and not self._was_connected:
            logger.info("Connected, advertising %d topic(s)", len(self.channels))
            self.advertise_all()
        self._was_connected = connected
