"""Length-prefixed binary frames and a session that reads and writes them."""

from __future__ import annotations

import asyncio
import inspect
import logging
import struct
import uuid
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .common import HEAD_TOTAL_LEN, MAX_LENGTH, MAX_SENDQUE

logger = logging.getLogger(__name__)

_HEADER = struct.Struct("!HH")


class FrameError(ValueError):
    """A frame is malformed or out of bounds."""


@dataclass(frozen=True)
class Message:
    """One decoded frame."""

    msg_id: int
    payload: bytes


def _parse_header(head: bytes) -> tuple[int, int]:
    msg_id, length = _HEADER.unpack(head)
    if msg_id > MAX_LENGTH:
        raise FrameError(f"invalid msg_id {msg_id}")
    if length > MAX_LENGTH:
        raise FrameError(f"invalid data length {length}")
    return msg_id, length


def encode_frame(msg_id: int, payload: bytes) -> bytes:
    """Frame ``payload``: 2-byte id and 2-byte length, big-endian, then the data."""
    if not 0 <= msg_id <= 0xFFFF:
        raise FrameError(f"msg_id {msg_id} does not fit in two bytes")
    if len(payload) > MAX_LENGTH:
        raise FrameError(f"payload of {len(payload)} bytes exceeds {MAX_LENGTH}")
    return _HEADER.pack(msg_id, len(payload)) + bytes(payload)


class FrameDecoder:
    """Incremental decoder: feed bytes, get back every complete frame."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def pending(self) -> int:
        """Number of bytes held back waiting for the rest of a frame."""
        return len(self._buffer)

    def feed(self, data: bytes) -> list[Message]:
        """Add ``data``; raises ``FrameError`` on an invalid header."""
        self._buffer += data
        messages: list[Message] = []
        while len(self._buffer) >= HEAD_TOTAL_LEN:
            msg_id, length = _parse_header(bytes(self._buffer[:HEAD_TOTAL_LEN]))
            end = HEAD_TOTAL_LEN + length
            if len(self._buffer) < end:
                break
            messages.append(Message(msg_id, bytes(self._buffer[HEAD_TOTAL_LEN:end])))
            del self._buffer[:end]
        return messages


MessageHandler = Callable[["Session", Message], Any | Awaitable[Any]]


class Session:
    """One client connection exchanging frames over asyncio streams."""

    def __init__(self, reader: asyncio.StreamReader, writer: Any,
                 on_message: MessageHandler) -> None:
        self._reader = reader
        self._writer = writer
        self._on_message = on_message
        self.session_id = str(uuid.uuid4())
        self.user_id = 0
        self._send_queue: deque[bytes] = deque()
        self._writer_task: asyncio.Task | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, payload: bytes | str, msg_id: int) -> bool:
        """Queue a frame for sending; ``False`` if closed or the queue is full."""
        if self._closed:
            return False
        if len(self._send_queue) > MAX_SENDQUE:
            logger.warning("session: %s send que fulled, size is %d",
                           self.session_id, MAX_SENDQUE)
            return False
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        self._send_queue.append(encode_frame(msg_id, payload))
        if self._writer_task is None or self._writer_task.done():
            self._writer_task = asyncio.get_running_loop().create_task(self._flush())
        return True

    async def _flush(self) -> None:
        try:
            while self._send_queue and not self._closed:
                self._writer.write(self._send_queue[0])
                await self._writer.drain()
                if self._send_queue:
                    self._send_queue.popleft()
        except OSError as exc:
            logger.warning("handle write failed, error is %s", exc)
            self.close()

    async def run(self) -> None:
        """Read frames and pass each to the handler until the peer goes away."""
        try:
            while not self._closed:
                head = await self._reader.readexactly(HEAD_TOTAL_LEN)
                msg_id, length = _parse_header(head)
                body = await self._reader.readexactly(length)
                result = self._on_message(self, Message(msg_id, body))
                if inspect.isawaitable(result):
                    await result
        except asyncio.IncompleteReadError:
            logger.info("session %s closed by peer", self.session_id)
        except (FrameError, OSError) as exc:
            logger.warning("handle read failed, error is %s", exc)
        finally:
            self.close()

    def close(self) -> None:
        """Close the connection and drop anything still queued."""
        if self._closed:
            return
        self._closed = True
        self._send_queue.clear()
        self._writer.close()