import asyncio
import json
import socket

import websockets

from conftest import wait_for
from rosbridge.connection import Connection, ConnectionStatus
from rosbridge.endpoint import Endpoint


def unused_port():
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def server_port(server):
    return server.sockets[0].getsockname()[1]


def test_delivers_text_frames_and_reports_close():
    received = []

    async def handler(websocket):
        async for message in websocket:
            received.append(message)
            if len(received) == 2:
                await websocket.close()

    async def scenario():
        statuses = []
        async with websockets.serve(handler, "127.0.0.1", 0) as server:
            endpoint = Endpoint(f"ws://127.0.0.1:{server_port(server)}")
            connection = Connection(endpoint, on_state_change=lambda c, s: statuses.append(s.status))

            connection.send(b'{"op":"dropped"}')
            connection.open()
            connection.open()
            await wait_for(lambda: connection.state.is_connected)

            connection.send(b'{"op":"advertise","topic":"/a","type":"sensor_msgs/Imu"}')
            connection.send(b'{"op":"unadvertise","topic":"/a"}')
            await wait_for(lambda: connection.state.is_stopped)
        return connection, statuses

    connection, statuses = asyncio.run(scenario())
    assert received == [
        '{"op":"advertise","topic":"/a","type":"sensor_msgs/Imu"}',
        '{"op":"unadvertise","topic":"/a"}',
    ]
    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED]
    assert connection.state.error is None

    # Disconnected is terminal: sends are dropped and open does nothing
    connection.send(b"{}")
    assert connection.state.is_stopped


def test_refused_connection_ends_disconnected():
    async def scenario():
        statuses = []
        connection = Connection(
            Endpoint(f"ws://127.0.0.1:{unused_port()}"),
            on_state_change=lambda c, s: statuses.append(s.status),
        )
        connection.open()
        await wait_for(lambda: connection.state.is_stopped)
        return connection, statuses

    connection, statuses = asyncio.run(scenario())
    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.DISCONNECTED]
    assert connection.state.error


def test_status_messages_do_not_break_the_session():
    async def handler(websocket):
        await websocket.send(json.dumps({"op": "status", "level": "error", "msg": "unknown topic"}))
        await websocket.send("not json")
        await websocket.send(b"\x00\x01")
        await websocket.wait_closed()

    async def scenario():
        async with websockets.serve(handler, "127.0.0.1", 0) as server:
            connection = Connection(Endpoint(f"ws://127.0.0.1:{server_port(server)}"))
            connection.open()
            await wait_for(lambda: connection.state.is_connected)
            await asyncio.sleep(0.1)
            state = connection.state
            connection.discard()
            return state

    assert asyncio.run(scenario()).status is ConnectionStatus.CONNECTED


def test_discard_detaches_observer_and_closes():
    closed = []

    async def handler(websocket):
        await websocket.wait_closed()
        closed.append(True)

    async def scenario():
        statuses = []
        async with websockets.serve(handler, "127.0.0.1", 0) as server:
            connection = Connection(
                Endpoint(f"ws://127.0.0.1:{server_port(server)}"),
                on_state_change=lambda c, s: statuses.append(s.status),
            )
            connection.open()
            await wait_for(lambda: connection.state.is_connected)
            connection.discard()
            await wait_for(lambda: closed)
        return statuses

    statuses = asyncio.run(scenario())
    assert statuses == [ConnectionStatus.CONNECTING, ConnectionStatus.CONNECTED]


def test_flush_waits_for_queued_frames():
    received = []

    async def handler(websocket):
        async for message in websocket:
            received.append(message)

    async def scenario():
        async with websockets.serve(handler, "127.0.0.1", 0) as server:
            connection = Connection(Endpoint(f"ws://127.0.0.1:{server_port(server)}"))
            await connection.flush()

            connection.open()
            await wait_for(lambda: connection.state.is_connected)
            for i in range(50):
                connection.send(json.dumps({"op": "publish", "topic": "/a", "msg": {"i": i}}).encode())
            await asyncio.wait_for(connection.flush(), 1.0)
            assert connection._outbox.empty()

            await wait_for(lambda: len(received) == 50)
            connection.discard()

    asyncio.run(scenario())
