import asyncio
import json
import time

import pytest

from rosbridge.connection import ConnectionState, ConnectionStatus


class FakeConnection:
    """Stands in for Connection; tests drive its status by hand."""

    def __init__(self, endpoint, on_state_change=None):
        self.endpoint = endpoint
        self.state = ConnectionState(ConnectionStatus.IDLE, endpoint)
        self.sent = []
        self.discarded = False
        self._on_state_change = on_state_change

    def open(self):
        self.set_status(ConnectionStatus.CONNECTING)

    def set_status(self, status, error=None):
        self.state = ConnectionState(status, self.endpoint, error)
        if self._on_state_change is not None:
            self._on_state_change(self, self.state)

    def send(self, data):
        if self.state.is_connected:
            self.sent.append(data)

    async def flush(self):
        pass

    def discard(self):
        self._on_state_change = None
        self.discarded = True

    def frames(self):
        return [json.loads(data) for data in self.sent]


@pytest.fixture
def connection_factory():
    created = []

    def factory(endpoint, on_state_change=None):
        connection = FakeConnection(endpoint, on_state_change)
        created.append(connection)
        return connection

    factory.created = created
    return factory


async def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)
