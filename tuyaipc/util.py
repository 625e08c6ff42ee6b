"""Small string, number and timestamp helpers."""

from __future__ import annotations

import re
import secrets
import time

BUFFER_SIZE = 64 * 1024
CONN_DIAL_TIMEOUT = 3.0
CONN_DEADLINE = 5.0
PROBE_TIMEOUT = 3.0

SYMBOLS = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ-_"

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1
_NANOS_PER_SECOND = 1_000_000_000


def _wrap_int64(value: int) -> int:
    value &= (1 << 64) - 1
    return value - (1 << 64) if value > _INT64_MAX else value


def now_90000() -> int:
    """Return the current time as a 32-bit timestamp at a 90 kHz clock rate."""
    product = _wrap_int64(time.time_ns() * 90000)
    quotient = abs(product) // _NANOS_PER_SECOND
    if product < 0:
        quotient = -quotient
    return quotient & 0xFFFFFFFF


def rand_string(size: int, base: int) -> str:
    """Return a random string of ``size`` symbols.

    ``base`` 10 gives digits, 16 hex, 36 digits and letters, 64 URL-safe
    symbols; 0 gives raw random bytes as a latin-1 string.
    """
    if base > len(SYMBOLS):
        raise ValueError(f"base must be at most {len(SYMBOLS)}, got {base}")
    data = secrets.token_bytes(size)
    if base == 0:
        return data.decode("latin-1")
    return "".join(SYMBOLS[byte % base] for byte in data)


def before(s: str, sep: str) -> str:
    """Return the part of ``s`` before ``sep``, or ``s`` if ``sep`` does not follow a prefix."""
    index = s.find(sep)
    if index > 0:
        return s[:index]
    return s


def between(s: str, sub1: str, sub2: str) -> str:
    """Return the text after ``sub1`` and up to ``sub2`` (or the end)."""
    index = s.find(sub1)
    if index < 0:
        return ""
    rest = s[index + len(sub1):]
    end = rest.find(sub2)
    if end >= 0:
        return rest[:end]
    return rest


def atoi(s: str) -> int:
    """Parse a decimal integer, returning 0 when the text is not one."""
    if not s or not _INT_RE.fullmatch(s):
        return 0
    return max(_INT64_MIN, min(_INT64_MAX, int(s)))