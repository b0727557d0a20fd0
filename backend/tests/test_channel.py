import asyncio
import json

import pytest

from realtime_console.channel.websocket import WebSocketChannel


class FakeWebSocket:
    def __init__(self, incoming: list, send_error: Exception = None, read_error: Exception = None, hold_open: bool = False):
        self.incoming = incoming
        self.hold_open = hold_open
        self.send_error = send_error
        self.read_error = read_error
        self.sent = []
        self.closed = False

    async def send(self, message: str):
        await asyncio.sleep(0)
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(message)

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for message in self.incoming:
            await asyncio.sleep(0)
            yield message
        if self.read_error is not None:
            raise self.read_error
        if self.hold_open:
            await asyncio.Event().wait()

    async def close(self):
        self.closed = True


async def _settle(rounds: int = 10):
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_outbound_events_keep_send_order():
    ws = FakeWebSocket([])
    channel = WebSocketChannel(ws)

    for index in range(20):
        channel.send({"type": "conversation.item.create", "index": index})
    await _settle(60)

    assert [json.loads(item)["index"] for item in ws.sent] == list(range(20))
    await channel.close()
    assert ws.closed is True


@pytest.mark.asyncio
async def test_inbound_frames_are_decoded_and_close_reported():
    ws = FakeWebSocket([
        json.dumps({"type": "session.created"}),
        "not json",
        json.dumps({"type": "response.done"}),
    ])
    channel = WebSocketChannel(ws)
    events = []
    closes = []

    channel.listen(events.append, closes.append)
    await _settle()

    assert [event["type"] for event in events] == ["session.created", "response.done"]
    assert closes == [None]
    await channel.close()


@pytest.mark.asyncio
async def test_send_after_close_is_rejected():
    channel = WebSocketChannel(FakeWebSocket([]))
    await channel.close()

    with pytest.raises(ConnectionError):
        channel.send({"type": "response.create"})


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_the_reader():
    ws = FakeWebSocket([
        json.dumps({"type": "error"}),
        json.dumps({"type": "response.done"}),
    ])
    channel = WebSocketChannel(ws)
    events = []
    closes = []

    def on_event(event):
        events.append(event["type"])
        if event["type"] == "error":
            raise RuntimeError("notify callback failed")

    channel.listen(on_event, closes.append)
    await _settle()

    assert events == ["error", "response.done"]
    assert closes == [None]
    await channel.close()


@pytest.mark.asyncio
async def test_reader_failure_is_reported_through_close_handler():
    failure = OSError("socket reset")
    channel = WebSocketChannel(FakeWebSocket([json.dumps({"type": "session.created"})], read_error=failure))
    closes = []

    channel.listen(lambda event: None, closes.append)
    await _settle()

    assert closes == [failure]
    await channel.close()


@pytest.mark.asyncio
async def test_writer_failure_is_reported_once():
    failure = OSError("broken pipe")
    channel = WebSocketChannel(FakeWebSocket([], send_error=failure, hold_open=True))
    closes = []

    channel.listen(lambda event: None, closes.append)
    channel.send({"type": "response.create"})
    await _settle()

    assert closes == [failure]
    await channel.close()
    assert closes == [failure]
