"""Status service: picks the least loaded chat server and checks login tokens."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Protocol

from .common import LOGIN_COUNT, ErrorCode, token_key
from .config import ConfigManager

logger = logging.getLogger(__name__)

# Load assumed for a server whose login count is not recorded.
UNKNOWN_LOAD = 2**31 - 1


class StatusStore(Protocol):
    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> bool: ...
    def hget(self, key: str, hkey: str) -> str: ...


@dataclass
class ChatServer:
    """A chat server that clients can be sent to."""

    host: str = ""
    port: str = ""
    name: str = ""
    con_count: int = 0


@dataclass
class ChatServerReply:
    """Answer to a request for a chat server."""

    host: str = ""
    port: str = ""
    error: int = ErrorCode.SUCCESS
    token: str = ""


@dataclass
class LoginReply:
    """Answer to a login check."""

    error: int
    uid: int = 0
    token: str = ""


def generate_unique_string() -> str:
    """A fresh random UUID in its canonical text form."""
    return str(uuid.uuid4())


class StatusService:
    """Hands out chat servers by load and validates login tokens."""

    def __init__(self, servers: Iterable[ChatServer], store: StatusStore) -> None:
        self._servers: dict[str, ChatServer] = {server.name: server for server in servers}
        self._store = store
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: ConfigManager, store: StatusStore) -> "StatusService":
        """Servers named by ``[chatservers] Name``, each read from its own section."""
        servers = []
        for word in config["chatservers"]["Name"].split(","):
            word = word.strip()
            if not word:
                continue
            section = config[word]
            if not section["Name"]:
                continue
            servers.append(
                ChatServer(host=section["Host"], port=section["Port"], name=section["Name"])
            )
        return cls(servers, store)

    @property
    def servers(self) -> list[ChatServer]:
        """Copies of the known servers in configuration order."""
        with self._lock:
            return [replace(server) for server in self._servers.values()]

    def _load_of(self, name: str) -> int:
        count = self._store.hget(LOGIN_COUNT, name)
        return UNKNOWN_LOAD if not count else int(count)

    def select_server(self) -> ChatServer:
        """The server with the fewest logins; the earliest wins a tie.

        Raises ``LookupError`` when no server is configured.
        """
        with self._lock:
            if not self._servers:
                raise LookupError("no chat server configured")
            best: ChatServer | None = None
            for server in self._servers.values():
                server.con_count = self._load_of(server.name)
                if best is None or server.con_count < best.con_count:
                    best = server
            return replace(best)

    def get_chat_server(self, uid: int) -> ChatServerReply:
        """Pick a server for ``uid`` and record a new login token for it."""
        server = self.select_server()
        token = generate_unique_string()
        self._store.set(token_key(uid), token)
        return ChatServerReply(
            host=server.host, port=server.port, error=ErrorCode.SUCCESS, token=token
        )

    def login(self, uid: int, token: str) -> LoginReply:
        """Check ``token`` against the one recorded for ``uid``."""
        stored = self._store.get(token_key(uid))
        if stored is None:
            return LoginReply(error=ErrorCode.UID_INVALID)
        if stored != token:
            return LoginReply(error=ErrorCode.TOKEN_INVALID)
        return LoginReply(error=ErrorCode.SUCCESS, uid=uid, token=token)