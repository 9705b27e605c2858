import asyncio
import uuid

import pytest

from chatgate.common import MAX_LENGTH, MAX_SENDQUE
from chatgate.protocol import FrameDecoder, FrameError, Message, Session, encode_frame


class FakeWriter:
    def __init__(self, gate=None):
        self.data = bytearray()
        self.closed = False
        self._gate = gate

    def write(self, data):
        self.data += data

    async def drain(self):
        if self._gate is not None:
            await self._gate.wait()

    def close(self):
        self.closed = True


def test_encode_frame_wire_bytes():
    assert encode_frame(1, b"ab") == b"\x00\x01\x00\x02ab"


def test_encode_rejects_oversized_payload():
    with pytest.raises(FrameError):
        encode_frame(1, b"x" * (MAX_LENGTH + 1))


def test_encode_rejects_bad_id():
    with pytest.raises(FrameError):
        encode_frame(-1, b"")


def test_decoder_roundtrip():
    data = encode_frame(1005, b"hello") + encode_frame(3, b"")
    assert FrameDecoder().feed(data) == [Message(1005, b"hello"), Message(3, b"")]


def test_decoder_handles_split_input():
    frame = encode_frame(7, b"payload")
    decoder = FrameDecoder()
    assert decoder.feed(frame[:3]) == []
    assert decoder.feed(frame[3:6]) == []
    assert decoder.pending == 6
    assert decoder.feed(frame[6:]) == [Message(7, b"payload")]
    assert decoder.pending == 0


def test_decoder_rejects_long_length():
    header = (1).to_bytes(2, "big") + (MAX_LENGTH + 1).to_bytes(2, "big")
    with pytest.raises(FrameError):
        FrameDecoder().feed(header)


def test_decoder_rejects_large_id():
    header = (MAX_LENGTH + 1).to_bytes(2, "big") + (0).to_bytes(2, "big")
    with pytest.raises(FrameError):
        FrameDecoder().feed(header)


@pytest.mark.asyncio
async def test_session_reads_messages_until_eof():
    reader = asyncio.StreamReader()
    reader.feed_data(encode_frame(2, b"one") + encode_frame(4, b"two"))
    reader.feed_eof()
    writer = FakeWriter()
    received = []
    session = Session(reader, writer, lambda s, m: received.append(m))
    await session.run()
    assert received == [Message(2, b"one"), Message(4, b"two")]
    assert session.closed
    assert writer.closed


@pytest.mark.asyncio
async def test_session_async_handler():
    reader = asyncio.StreamReader()
    reader.feed_data(encode_frame(9, b"hi"))
    reader.feed_eof()
    received = []

    async def handler(session, message):
        received.append((session.session_id, message))

    session = Session(reader, FakeWriter(), handler)
    await session.run()
    assert received == [(session.session_id, Message(9, b"hi"))]


@pytest.mark.asyncio
async def test_session_closes_on_invalid_length():
    reader = asyncio.StreamReader()
    reader.feed_data((1).to_bytes(2, "big") + (MAX_LENGTH + 1).to_bytes(2, "big"))
    writer = FakeWriter()
    received = []
    session = Session(reader, writer, lambda s, m: received.append(m))
    await session.run()
    assert received == []
    assert writer.closed


@pytest.mark.asyncio
async def test_session_truncated_body():
    reader = asyncio.StreamReader()
    reader.feed_data(encode_frame(1, b"abcde")[:6])
    reader.feed_eof()
    received = []
    session = Session(reader, FakeWriter(), lambda s, m: received.append(m))
    await session.run()
    assert received == []
    assert session.closed


@pytest.mark.asyncio
async def test_session_send_writes_frames_in_order():
    writer = FakeWriter()
    session = Session(asyncio.StreamReader(), writer, lambda s, m: None)
    assert session.send(b"first", 5)
    assert session.send("second", 6)
    for _ in range(10):
        await asyncio.sleep(0)
    assert bytes(writer.data) == encode_frame(5, b"first") + encode_frame(6, b"second")


@pytest.mark.asyncio
async def test_session_send_queue_limit():
    gate = asyncio.Event()
    writer = FakeWriter(gate)
    session = Session(asyncio.StreamReader(), writer, lambda s, m: None)
    results = [session.send(b"x", 1) for _ in range(MAX_SENDQUE + 2)]
    assert results.count(True) == MAX_SENDQUE + 1
    assert results[-1] is False
    gate.set()
    session.close()
    await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_send_after_close_fails():
    writer = FakeWriter()
    session = Session(asyncio.StreamReader(), writer, lambda s, m: None)
    session.close()
    assert session.send(b"late", 1) is False
    assert writer.data == bytearray()


def test_session_identity_defaults():
    session = Session(None, FakeWriter(), lambda s, m: None)
    assert uuid.UUID(session.session_id).version == 4
    assert session.user_id == 0