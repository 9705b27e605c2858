"""URL query encoding and request-target parsing."""

from __future__ import annotations

_UNRESERVED = frozenset(
    b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.~"
)
_HEX_DIGITS = "0123456789ABCDEF"


def url_encode(text: str) -> str:
    """Percent-encode ``text`` as UTF-8; spaces become ``+``."""
    parts: list[str] = []
    for byte in text.encode("utf-8"):
        if byte in _UNRESERVED:
            parts.append(chr(byte))
        elif byte == 0x20:
            parts.append("+")
        else:
            parts.append("%" + _HEX_DIGITS[byte >> 4] + _HEX_DIGITS[byte & 0x0F])
    return "".join(parts)


def _hex_value(char: str) -> int:
    try:
        return int(char, 16)
    except ValueError:
        raise ValueError(f"invalid hex digit {char!r} in escape") from None


def url_decode(text: str) -> str:
    """Reverse :func:`url_encode`; raises ``ValueError`` on a bad escape."""
    out = bytearray()
    chars = iter(text)
    for char in chars:
        if char == "+":
            out.append(0x20)
        elif char == "%":
            high = next(chars, None)
            low = next(chars, None)
            if high is None or low is None:
                raise ValueError("truncated percent escape")
            out.append(_hex_value(high) * 16 + _hex_value(low))
        else:
            out.extend(char.encode("utf-8"))
    return out.decode("utf-8", errors="replace")


def split_target(target: str) -> tuple[str, dict[str, str]]:
    """Split a request target into its path and decoded query parameters.

    Pairs without ``=`` are ignored; a later key overrides an earlier one.
    """
    path, sep, query = target.partition("?")
    params: dict[str, str] = {}
    if not sep:
        return path, params
    for pair in query.split("&"):
        key, eq, value = pair.partition("=")
        if eq:
            params[url_decode(key)] = url_decode(value)
    return path, params