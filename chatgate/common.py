"""Shared error codes, key prefixes, wire limits and user records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    """Error codes carried in the ``error`` field of every reply."""

    SUCCESS = 0
    ERROR_JSON = 1001
    RPC_FAILED = 1002
    VERIFY_EXPIRED = 1003
    VERIFY_CODE_ERR = 1004
    USER_EXIST = 1005
    PASSWD_ERR = 1006
    EMAIL_NOT_MATCH = 1007
    PASSWD_UP_FAILED = 1008
    PASSWD_INVALID = 1009
    TOKEN_INVALID = 1010
    UID_INVALID = 1011


# Redis key prefixes and names.
CODE_PREFIX = "code_"
LOGIN_COUNT = "logincount"
USER_IP_PREFIX = "uip_"
USER_TOKEN_PREFIX = "utoken_"
IP_COUNT_PREFIX = "ipcount_"
USER_BASE_INFO = "ubaseinfo_"

# Framing limits of the binary session protocol.
MAX_LENGTH = 1024 * 2
HEAD_TOTAL_LEN = 4
HEAD_ID_LEN = 2
HEAD_DATA_LEN = 2
MAX_RECVQUE = 10000
MAX_SENDQUE = 1000


def token_key(uid: int) -> str:
    """Redis key under which the login token of ``uid`` is stored."""
    return f"{USER_TOKEN_PREFIX}{uid}"


def code_key(email: str) -> str:
    """Redis key under which the verification code for ``email`` is stored."""
    return f"{CODE_PREFIX}{email}"


@dataclass
class UserInfo:
    """A registered user's profile."""

    name: str = ""
    pwd: str = ""
    uid: int = 0
    email: str = ""
    nick: str = ""
    desc: str = ""
    sex: int = 0
    icon: str = ""
    back: str = ""


@dataclass
class ApplyInfo:
    """A pending friend application."""

    uid: int
    name: str
    desc: str
    icon: str
    nick: str
    sex: int
    status: int