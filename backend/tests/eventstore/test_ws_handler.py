import asyncio
import json
from uuid import uuid4

from redis.exceptions import ConnectionError as RedisConnectionError

from main import app


class _Socket:
    """Drives the websocket route with raw ASGI messages on the test's own loop."""

    def __init__(self, note_id):
        self.scope = {
            "type": "websocket",
            "asgi": {"version": "3.0"},
            "scheme": "ws",
            "path": f"/ws/notes/{note_id}",
            "raw_path": f"/ws/notes/{note_id}".encode(),
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"test")],
            "client": ("testclient", 50000),
            "server": ("test", 80),
            "subprotocols": [],
        }
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.outgoing: asyncio.Queue = asyncio.Queue()
        self.fail_sends = False
        self.dropped = asyncio.Event()

    async def __aenter__(self):
        await self.incoming.put({"type": "websocket.connect"})
        self.task = asyncio.create_task(app(self.scope, self.incoming.get, self._send))
        return self

    async def _send(self, message):
        if self.fail_sends:
            self.dropped.set()
            raise RuntimeError("send failed")
        await self.outgoing.put(message)

    async def __aexit__(self, *exc_info):
        await self.incoming.put({"type": "websocket.disconnect", "code": 1000})
        await asyncio.wait_for(self.task, timeout=2)

    async def next_message(self) -> dict:
        return await asyncio.wait_for(self.outgoing.get(), timeout=2)

    async def receive_json(self) -> dict:
        message = await self.next_message()
        assert message["type"] == "websocket.send"
        return json.loads(message["text"])

    async def send_json(self, data: dict):
        await self.incoming.put({"type": "websocket.receive", "text": json.dumps(data)})


async def _open(socket):
    accepted = await socket.next_message()
    assert accepted["type"] == "websocket.accept"
    return await socket.receive_json()


async def test_connect_sends_current_content(client, note):
    for i, char in enumerate("hi"):
        await client.post(
            f"/api/notes/{note.id}/events",
            json={"operation": "keystroke", "char": char, "position": i},
        )

    async with _Socket(note.id) as ws:
        assert await _open(ws) == {"type": "content", "content": "hi"}


async def test_append_is_broadcast_back(note):
    async with _Socket(note.id) as ws:
        await _open(ws)
        await ws.send_json({"operation": "keystroke", "char": "a", "position": 0, "device_id": "laptop"})

        event = await ws.receive_json()
        assert event["char"] == "a"
        assert event["device_id"] == "laptop"
        assert event["event_hash"]


async def test_http_appends_reach_open_sockets(client, note):
    async with _Socket(note.id) as ws:
        await _open(ws)
        await client.post(
            f"/api/notes/{note.id}/events",
            json={"operation": "paste", "text": "hello", "position": 0},
        )

        event = await ws.receive_json()
        assert event["operation"] == "paste"
        assert event["text"] == "hello"


async def test_invalid_message_reports_error_and_keeps_socket(note):
    async with _Socket(note.id) as ws:
        await _open(ws)
        await ws.send_json({"operation": "scribble"})

        error = await ws.receive_json()
        assert error["type"] == "error"
        assert error["detail"][0]["loc"] == ["operation"]

        await ws.send_json({"operation": "keystroke", "char": "b", "position": 0})
        assert (await ws.receive_json())["char"] == "b"


async def test_writer_gets_its_event_when_publish_fails(note, redis, event_repo, monkeypatch):
    async def _publish(channel, message):
        raise RedisConnectionError("redis went away")

    monkeypatch.setattr(redis, "publish", _publish)

    async with _Socket(note.id) as ws:
        await _open(ws)
        await ws.send_json({"operation": "keystroke", "char": "c", "position": 0})

        assert (await ws.receive_json())["char"] == "c"

    [event] = await event_repo.get_interactions(note.id)
    assert event.char == "c"


async def test_failed_forward_keeps_the_subscription(client, note):
    async with _Socket(note.id) as ws:
        await _open(ws)

        ws.fail_sends = True
        await client.post(
            f"/api/notes/{note.id}/events",
            json={"operation": "keystroke", "char": "x", "position": 0},
        )
        await asyncio.wait_for(ws.dropped.wait(), timeout=2)

        ws.fail_sends = False
        await client.post(
            f"/api/notes/{note.id}/events",
            json={"operation": "keystroke", "char": "y", "position": 1},
        )
        assert (await ws.receive_json())["char"] == "y"


async def test_unknown_note_is_closed():
    async with _Socket(uuid4()) as ws:
        message = await ws.next_message()

    assert message["type"] == "websocket.close"
    assert message["code"] == 4004
