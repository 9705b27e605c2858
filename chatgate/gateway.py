"""HTTP gateway: routing of GET/POST requests to the account handlers."""

from __future__ import annotations

import argparse
import configparser
import json
import logging
import signal
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Protocol

from .common import ErrorCode, UserInfo, code_key
from .config import ConfigManager, load_config
from .redis_store import RedisManager
from .urlcodec import split_target

logger = logging.getLogger(__name__)

SERVER_NAME = "GateServer"
REQUEST_TIMEOUT = 60
NOT_FOUND_TEXT = "url not found\r\n"


@dataclass
class Request:
    """A parsed HTTP request as seen by a handler."""

    method: str
    target: str
    path: str
    params: dict[str, str] = field(default_factory=dict)
    body: str = ""


@dataclass
class Response:
    """A response being built by a handler."""

    status: HTTPStatus = HTTPStatus.OK
    headers: dict[str, str] = field(default_factory=dict)
    _parts: list[str] = field(default_factory=list, repr=False)

    def write(self, text: str) -> None:
        """Append ``text`` to the body."""
        self._parts.append(text)

    @property
    def body(self) -> str:
        return "".join(self._parts)

    @property
    def content(self) -> bytes:
        return self.body.encode("utf-8")


Handler = Callable[[Request, Response], None]


class Router:
    """Maps exact paths to GET and POST handlers."""

    def __init__(self) -> None:
        self._get: dict[str, Handler] = {}
        self._post: dict[str, Handler] = {}

    def register_get(self, path: str, handler: Handler) -> None:
        """Register a GET handler; a path already registered keeps its first handler."""
        self._get.setdefault(path, handler)

    def register_post(self, path: str, handler: Handler) -> None:
        """Register a POST handler; a path already registered keeps its first handler."""
        self._post.setdefault(path, handler)

    def handle_get(self, path: str, request: Request, response: Response) -> bool:
        """Run the GET handler of ``path``; ``False`` if there is none."""
        handler = self._get.get(path)
        if handler is None:
            return False
        handler(request, response)
        return True

    def handle_post(self, path: str, request: Request, response: Response) -> bool:
        """Run the POST handler of ``path``; ``False`` if there is none."""
        handler = self._post.get(path)
        if handler is None:
            return False
        handler(request, response)
        return True


def _not_found(response: Response) -> Response:
    response.status = HTTPStatus.NOT_FOUND
    response.headers["Content-Type"] = "text/plain"
    response.write(NOT_FOUND_TEXT)
    return response


def _found(response: Response) -> Response:
    response.status = HTTPStatus.OK
    response.headers["Server"] = SERVER_NAME
    return response


def handle_request(
    router: Router, method: str, target: str, body: str | bytes = ""
) -> Response | None:
    """Dispatch one request; ``None`` for methods other than GET and POST."""
    if isinstance(body, bytes):
        body = body.decode("utf-8", errors="replace")
    method = method.upper()
    response = Response()
    if method == "GET":
        path, params = split_target(target)
        request = Request(method, target, path, params, body)
        if not router.handle_get(path, request, response):
            return _not_found(response)
        return _found(response)
    if method == "POST":
        request = Request(method, target, target, {}, body)
        if not router.handle_post(target, request, response):
            return _not_found(response)
        return _found(response)
    return None


# --- account handlers -------------------------------------------------------


class VerifyClient(Protocol):
    def get_verify_code(self, email: str) -> int: ...


class CodeStore(Protocol):
    def get(self, key: str) -> str | None: ...


class UserDirectory(Protocol):
    def reg_user(self, name: str, email: str, pwd: str) -> int: ...
    def check_email(self, name: str, email: str) -> bool: ...
    def update_pwd(self, name: str, pwd: str) -> bool: ...
    def check_pwd(self, email: str, pwd: str) -> UserInfo | None: ...


class StatusClient(Protocol):
    def get_chat_server(self, uid: int) -> Any: ...


def styled_json(root: dict[str, Any]) -> str:
    """Render ``root`` in the indented, key-sorted style of the replies."""
    return (
        json.dumps(root, indent=3, sort_keys=True, separators=(",", " : "),
                   ensure_ascii=False)
        + "\n"
    )


def _as_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise TypeError("JSON value is not convertible to string")


def _parse_object(body: str) -> dict[str, Any] | None:
    try:
        data = json.loads(body)
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


class _GateLogic:
    """Account handlers; a missing service or directory makes its step fail."""

    def __init__(self, verify: VerifyClient | None, store: CodeStore,
                 users: UserDirectory | None, status: StatusClient | None) -> None:
        self.verify = verify
        self.store = store
        self.users = users
        self.status = status

    @staticmethod
    def _reply(response: Response, root: dict[str, Any]) -> None:
        response.write(styled_json(root))

    def _start_json(self, request: Request, response: Response) -> dict[str, Any] | None:
        logger.info("receive body is %s", request.body)
        response.headers["Content-Type"] = "text/json"
        src = _parse_object(request.body)
        if src is None:
            logger.info("Failed to parse JSON data!")
            self._reply(response, {"error": ErrorCode.ERROR_JSON.value})
        return src

    def _check_code(self, src: dict[str, Any], response: Response) -> bool:
        code = self.store.get(code_key(_as_string(src.get("email"))))
        if code is None:
            logger.info("get verify code expired")
            self._reply(response, {"error": ErrorCode.VERIFY_EXPIRED.value})
            return False
        if code != _as_string(src.get("verifycode")):
            logger.info("verify code error")
            self._reply(response, {"error": ErrorCode.VERIFY_CODE_ERR.value})
            return False
        return True

    def get_test(self, request: Request, response: Response) -> None:
        response.write("receive get_test req\n")
        for index, (key, value) in enumerate(request.params.items(), start=1):
            response.write(f"param {index} key is {key} ")
            response.write(f"param {index} value is {value}\n")

    def get_verifycode(self, request: Request, response: Response) -> None:
        src = self._start_json(request, response)
        if src is None:
            return
        if "email" not in src:
            logger.info("Failed to parse JSON data!")
            self._reply(response, {"error": ErrorCode.ERROR_JSON.value})
            return
        email = _as_string(src["email"])
        error = ErrorCode.RPC_FAILED.value
        if self.verify is None:
            logger.warning("verification service is not available")
        else:
            try:
                error = int(self.verify.get_verify_code(email))
            except Exception as exc:  # any transport failure is an RPC failure
                logger.warning("verify rpc failed: %s", exc)
        logger.info("email is %s", email)
        self._reply(response, {"error": error, "email": src["email"]})

    def user_register(self, request: Request, response: Response) -> None:
        src = self._start_json(request, response)
        if src is None:
            return
        email = _as_string(src.get("email"))
        name = _as_string(src.get("user"))
        pwd = _as_string(src.get("passwd"))
        confirm = _as_string(src.get("confirm"))
        if pwd != confirm:
            logger.info("password err")
            self._reply(response, {"error": ErrorCode.PASSWD_ERR.value})
            return
        if not self._check_code(src, response):
            return
        uid = self.users.reg_user(name, email, pwd) if self.users is not None else -1
        if uid in (0, -1):
            logger.info("user or email exist")
            self._reply(response, {"error": ErrorCode.USER_EXIST.value})
            return
        self._reply(response, {
            "uid": uid,
            "error": ErrorCode.SUCCESS.value,
            "email": email,
            "user": name,
            "passwd": pwd,
            "confirm": confirm,
            "verifycode": _as_string(src.get("verifycode")),
        })

    def reset_pwd(self, request: Request, response: Response) -> None:
        src = self._start_json(request, response)
        if src is None:
            return
        email = _as_string(src.get("email"))
        name = _as_string(src.get("user"))
        pwd = _as_string(src.get("passwd"))
        if not self._check_code(src, response):
            return
        if self.users is None or not self.users.check_email(name, email):
            logger.info("user email not match")
            self._reply(response, {"error": ErrorCode.EMAIL_NOT_MATCH.value})
            return
        if not self.users.update_pwd(name, pwd):
            logger.info("update pwd failed")
            self._reply(response, {"error": ErrorCode.PASSWD_UP_FAILED.value})
            return
        logger.info("succeed to update password")
        self._reply(response, {
            "error": ErrorCode.SUCCESS.value,
            "email": email,
            "user": name,
            "passwd": pwd,
            "verifycode": _as_string(src.get("verifycode")),
        })

    def user_login(self, request: Request, response: Response) -> None:
        src = self._start_json(request, response)
        if src is None:
            return
        name = _as_string(src.get("user"))
        pwd = _as_string(src.get("passwd"))
        email = _as_string(src.get("email"))
        info = self.users.check_pwd(email, pwd) if self.users is not None else None
        if info is None:
            logger.info("user pwd not match")
            self._reply(response, {"error": ErrorCode.PASSWD_INVALID.value})
            return
        reply: Any = None
        failed = True
        if self.status is None:
            logger.warning("status service is not available")
        else:
            try:
                reply = self.status.get_chat_server(info.uid)
                failed = bool(reply.error)
            except Exception as exc:  # any transport failure is an RPC failure
                logger.warning("status rpc failed: %s", exc)
        if failed:
            logger.info("grpc get chat server failed")
            self._reply(response, {"error": ErrorCode.RPC_FAILED.value})
            return
        logger.info("succeed to load userinfo uid is %s", info.uid)
        self._reply(response, {
            "error": ErrorCode.SUCCESS.value,
            "user": name,
            "uid": info.uid,
            "token": reply.token,
            "host": reply.host,
            "email": email,
            "port": reply.port,
        })


def build_router(verify: VerifyClient | None, store: CodeStore,
                 users: UserDirectory | None, status: StatusClient | None) -> Router:
    """Router with the test route and the account routes of the gateway."""
    logic = _GateLogic(verify, store, users, status)
    router = Router()
    router.register_get("/get_test", logic.get_test)
    router.register_post("/get_verifycode", logic.get_verifycode)
    router.register_post("/user_register", logic.user_register)
    router.register_post("/reset_pwd", logic.reset_pwd)
    router.register_post("/user_login", logic.user_login)
    return router


# --- HTTP server ------------------------------------------------------------


class _GateRequestHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"
    timeout = REQUEST_TIMEOUT
    server: "GateServer"

    def _dispatch(self) -> None:
        self.close_connection = True
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length > 0 else b""
        try:
            response = handle_request(self.server.router, self.command, self.path, body)
        except Exception as exc:
            logger.warning("exception is %s", exc)
            return
        if response is None:
            return
        content = response.content
        self.send_response_only(response.status)
        for name, value in response.headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(content)))
        self.send_header("Connection", "close")
        self.end_headers()
        self.wfile.write(content)

    do_GET = _dispatch
    do_POST = _dispatch

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class GateServer(ThreadingHTTPServer):
    """Threaded HTTP server answering each request once, then closing."""

    daemon_threads = True

    def __init__(self, address: tuple[str, int], router: Router) -> None:
        self.router = router
        super().__init__(address, _GateRequestHandler)


def main(argv: list[str] | None = None) -> int:
    """Run the gateway on the port from ``[GateServer] Port``."""
    parser = argparse.ArgumentParser(prog="chatgate", description="Chat HTTP gateway")
    parser.add_argument("--config", default=None, help="path of config.ini")
    args = parser.parse_args(argv)
    try:
        config: ConfigManager = load_config(args.config)
        port = int(config["GateServer"]["Port"])
    except (OSError, ValueError, configparser.Error) as exc:
        print(f"Error:{exc}", file=sys.stderr)
        return 1

    store = RedisManager.from_config(config)
    # No verification, status or user-database backends are attached here:
    # the handlers answer the corresponding requests with failure codes.
    router = build_router(None, store, None, None)
    try:
        server = GateServer(("", port), router)
    except OSError as exc:
        print(f"Error:{exc}", file=sys.stderr)
        store.close()
        return 1

    signal.signal(signal.SIGTERM, signal.default_int_handler)
    print(f"Gate Server listen on port: {port}")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
        store.close()
    return 0