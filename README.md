# chatgate

This package provides the server-side pieces of a chat backend:

- **Gateway** (`chatgate.gateway`). An HTTP front door with routes for verification codes, registration, password reset and login.
- **Status service** (`chatgate.status`). Picks the chat server that has the fewest logins, issues login tokens and checks them.
- **Session protocol** (`chatgate.protocol`). Length-prefixed binary frames, plus an asyncio session that reads and writes them.
- **Helpers**:
  - a Redis wrapper (`chatgate.redis_store`)
  - a blocking connection pool (`chatgate.pool`)
  - a round-robin pool of event loops (`chatgate.iopool`)
  - a registry of sessions keyed by user id (`chatgate.usermgr`)
  - INI configuration loading (`chatgate.config`)

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Configuration

Settings are read from an INI file. By default this is `config.ini` in the current directory.

```ini
[GateServer]
Port = 8080

[Redis]
Host = 127.0.0.1
Port = 6379
Passwd = password

[chatservers]
Name = chatserver1,chatserver2

[chatserver1]
Name = chatserver1
Host = 127.0.0.1
Port = 8090

[chatserver2]
Name = chatserver2
Host = 127.0.0.1
Port = 8091
```

To load the file in code, call `chatgate.config.load_config(path)` or `ConfigManager.from_file(path)`.

- Index a section, then a key: `config["Redis"]["Host"]`.
- A missing section or key reads as an empty string.
- `sections()` lists the section names in sorted order.
- Keys are case-sensitive.

## Running the gateway

```
chatgate [--config PATH]
```

The gateway listens on the port given as `Port` in `[GateServer]`. Each request gets one answer and the connection is then closed. To stop the gateway, press Ctrl-C or send SIGTERM.

| Method | Route | Purpose |
| --- | --- | --- |
| GET | `/get_test` | Lists the query parameters it received |
| POST | `/get_verifycode` | Requests a verification code for `email` |
| POST | `/user_register` | Registers `user` with `email`, `passwd`, `confirm`, `verifycode` |
| POST | `/reset_pwd` | Sets a new `passwd` for `user` and `email` after checking `verifycode` |
| POST | `/user_login` | Checks `email`/`passwd` and returns a chat server and token |

- An unknown route gets `404` with the body `url not found`.
- Every POST reply is a JSON object with an `error` field. `0` means success; any other value is one of the codes in `chatgate.common.ErrorCode`.
- The gateway looks for a verification code in Redis under `code_<email>` (see `code_key`).

## Library use

### Gateway

`build_router(verify, store, users, status)` builds a `Router` that has all of the routes above. You pass in the backends it needs:

| Argument | Must provide | Example |
| --- | --- | --- |
| `verify` | `get_verify_code(email)`, returning an error code | — |
| `store` | `get(key)`, returning the stored code or `None` | a `RedisManager` |
| `users` | `reg_user(name, email, pwd)` returning a uid (`0` or `-1` if the user exists), `check_email(name, email)`, `update_pwd(name, pwd)`, and `check_pwd(email, pwd)` returning a `UserInfo` or `None` | — |
| `status` | `get_chat_server(uid)`, returning an object with `error`, `host`, `port` and `token` | a `StatusService` |

`handle_request(router, method, target, body)` dispatches a single request and returns a `Response`. `GateServer(address, router)` serves a router over HTTP.

### Status service

`StatusService(servers, store)` takes a list of `ChatServer` objects and a store with `get`, `set` and `hget`. `StatusService.from_config(config, store)` reads the servers from `[chatservers]` instead.

- `select_server()` returns the server with the lowest count in the Redis hash `logincount`. A server with no count is treated as fully loaded. When counts are equal, the server listed first wins. If no server is configured it raises `LookupError`.
- `get_chat_server(uid)` picks a server, stores a fresh UUID token under `utoken_<uid>` and returns a `ChatServerReply`.
- `login(uid, token)` returns a `LoginReply`. Its `error` is `UID_INVALID` when no token is stored for the uid, `TOKEN_INVALID` when the token differs, and `SUCCESS` otherwise.

### Redis

`RedisManager` wraps a `ConnectionPool` of Redis clients. Build one with `RedisManager.from_config(config)`, which reads `[Redis]` and creates 5 clients.

Commands:
- `get`, `set`
- `lpush`, `lpop`, `rpush`, `rpop`
- `hset`, `hget`, `hdel`
- `delete`, `exists`
- `close`

Failures show up in the return value, not as exceptions. A failed command returns `False`, `None` or `""`, and so does any command run after `close()`.

### Session protocol

- A frame is a 2-byte message id, then a 2-byte payload length, then the payload. Both header fields are big-endian.
- `encode_frame(msg_id, payload)` builds a frame.
- `FrameDecoder.feed(data)` returns every complete `Message` in the bytes fed so far. It raises `FrameError` when the id or the length is above 2048.
- `Session(reader, writer, on_message)` wraps a connection:
  - `run()` reads frames from asyncio streams and passes each one to `on_message`.
  - `send(payload, msg_id)` queues a frame. It returns `False` once the session is closed or the send queue is full.

### Pools and registries

- `ConnectionPool(factory, size)` is thread-safe:
  - `acquire()` blocks until a connection is free.
  - `release()` gives one back.
  - `connection()` borrows one for the length of a `with` block.
  - After `close()`, `acquire()` raises `PoolClosedError`.
- `IOServicePool(size)` runs `size` asyncio event loops on background threads:
  - `next_loop()` returns them in turn.
  - `stop()`, or leaving the `with` block, stops and closes them.
- `UserSessions` maps user ids to session objects through `get_session`, `set_session` and `remove_session`.

## What is not included

- **No user database.** Nothing stores accounts. The `chatgate` command starts the gateway with no user directory, no verification-code sender and no status service. As a result, these routes always answer with failure codes:
  - `/get_verifycode` returns `RPC_FAILED`.
  - `/user_register` returns `USER_EXIST` once its password and code checks pass.
  - `/reset_pwd` returns `EMAIL_NOT_MATCH` once its code check passes.
  - `/user_login` returns `PASSWD_INVALID`.

  To serve these routes for real, supply working backends through `build_router`.
- **No network server for the status service.** `StatusService` can only be used as a library.
- **No e-mail sending.** Nothing sends verification codes. The gateway only reads codes that something else has already put into Redis.