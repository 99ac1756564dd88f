"""
rosbridge streaming module.

This module provides the connection supervisor, topic channels and wire
encoding used to stream sensor samples to a rosbridge WebSocket server.
"""

from .bridge import RosbridgeStreamer
from .endpoint import Endpoint
from .errors import EncodeError, InvalidEndpoint, TransportError

__all__ = ['RosbridgeStreamer', 'Endpoint', 'EncodeError', 'InvalidEndpoint', 'TransportError']
