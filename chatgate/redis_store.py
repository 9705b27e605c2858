"""Key/value operations on Redis through a pool of clients."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import redis

from .config import ConfigManager
from .pool import ConnectionPool, PoolClosedError

logger = logging.getLogger(__name__)

POOL_SIZE = 5


def _text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class RedisManager:
    """Redis commands that report failure by their return value.

    Every command borrows a client from the pool and always gives it back.
    A closed pool or a Redis error counts as a failed command.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    @classmethod
    def from_config(cls, config: ConfigManager) -> "RedisManager":
        """Build a manager from the ``[Redis]`` section (Host, Port, Passwd)."""
        section = config["Redis"]
        host = section["Host"]
        port = int(section["Port"] or 0)
        password = section["Passwd"] or None

        def factory() -> redis.Redis:
            return redis.Redis(
                host=host, port=port, password=password, decode_responses=True
            )

        return cls(ConnectionPool(factory, POOL_SIZE))

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @contextmanager
    def _client(self) -> Iterator[Any]:
        with self._pool.connection() as client:
            yield client

    def _run(self, description: str, command, failure):
        try:
            with self._client() as client:
                result = command(client)
        except PoolClosedError:
            logger.debug("[ %s ] skipped: pool closed", description)
            return failure
        except redis.RedisError as exc:
            logger.warning("Execute command [ %s ] failure: %s", description, exc)
            return failure
        return result

    def get(self, key: str) -> str | None:
        """Value of ``key``, or ``None`` if absent or not a string."""
        def command(client):
            reply = client.get(key)
            return None if reply is None else _text(reply)

        value = self._run(f"GET {key}", command, None)
        if value is None:
            logger.info("[ GET %s ] failed", key)
        else:
            logger.info("Succeed to execute command [ GET %s ]", key)
        return value

    def set(self, key: str, value: str) -> bool:
        """Store ``value`` under ``key``; ``True`` on an OK reply."""
        ok = self._run(f"SET {key} {value}", lambda c: bool(c.set(key, value)), False)
        logger.info("Execute command [ SET %s %s ] %s", key, value,
                    "success" if ok else "failure")
        return ok

    def lpush(self, key: str, value: str) -> bool:
        """Push ``value`` onto the head of the list at ``key``."""
        ok = self._run(f"LPUSH {key} {value}",
                       lambda c: int(c.lpush(key, value)) > 0, False)
        logger.info("Execute command [ LPUSH %s %s ] %s", key, value,
                    "success" if ok else "failure")
        return ok

    def lpop(self, key: str) -> str | None:
        """Pop from the head of the list at ``key``; ``None`` if empty."""
        def command(client):
            reply = client.lpop(key)
            return None if reply is None else _text(reply)

        return self._run(f"LPOP {key}", command, None)

    def rpush(self, key: str, value: str) -> bool:
        """Push ``value`` onto the tail of the list at ``key``."""
        ok = self._run(f"RPUSH {key} {value}",
                       lambda c: int(c.rpush(key, value)) > 0, False)
        logger.info("Execute command [ RPUSH %s %s ] %s", key, value,
                    "success" if ok else "failure")
        return ok

    def rpop(self, key: str) -> str | None:
        """Pop from the tail of the list at ``key``; ``None`` if empty."""
        def command(client):
            reply = client.rpop(key)
            return None if reply is None else _text(reply)

        return self._run(f"RPOP {key}", command, None)

    def hset(self, key: str, hkey: str, value: str | bytes) -> bool:
        """Set field ``hkey`` of the hash at ``key``."""
        def command(client):
            return isinstance(client.hset(key, hkey, value), int)

        return self._run(f"HSET {key} {hkey}", command, False)

    def hget(self, key: str, hkey: str) -> str:
        """Field ``hkey`` of the hash at ``key``, or ``""`` if absent."""
        def command(client):
            reply = client.hget(key, hkey)
            return "" if reply is None else _text(reply)

        return self._run(f"HGET {key} {hkey}", command, "")

    def hdel(self, key: str, field: str) -> bool:
        """Remove ``field`` from the hash at ``key``; ``True`` if one was removed."""
        return self._run(f"HDEL {key} {field}",
                         lambda c: int(c.hdel(key, field)) > 0, False)

    def delete(self, key: str) -> bool:
        """Delete ``key``; ``True`` whenever the command ran, present or not."""
        return self._run(f"DEL {key}",
                         lambda c: isinstance(c.delete(key), int), False)

    def exists(self, key: str) -> bool:
        """Whether ``key`` exists."""
        found = self._run(f"EXISTS {key}", lambda c: int(c.exists(key)) > 0, False)
        logger.info("%s [ Key %s ]", "Found" if found else "Not Found", key)
        return found

    def close(self) -> None:
        """Close the pool; later commands fail."""
        self._pool.close()