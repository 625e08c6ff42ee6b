"""Cloud account session data and its JSON form."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

_ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)

_RFC3339_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})"
)


def _format_time(value: datetime) -> str:
    """Format as RFC 3339 with trailing fractional zeros removed."""
    text = value.replace(microsecond=0, tzinfo=None).isoformat()
    if value.microsecond:
        text += "." + f"{value.microsecond:06d}".rstrip("0")
    minutes = int((value.utcoffset() or timedelta(0)).total_seconds()) // 60
    if minutes == 0:
        return text + "Z"
    sign = "-" if minutes < 0 else "+"
    return f"{text}{sign}{abs(minutes) // 60:02d}:{abs(minutes) % 60:02d}"


def _parse_time(value: Any) -> datetime:
    """Parse an RFC 3339 timestamp (None gives the zero time); raise ValueError when malformed."""
    if value is None:
        return _ZERO_TIME
    match = _RFC3339_RE.fullmatch(value) if isinstance(value, str) else None
    if match is None:
        raise ValueError(f"invalid timestamp: {value!r}")
    *parts, fraction, zone = match.groups()
    tz = timezone.utc
    if zone not in ("Z", "z"):
        offset = timedelta(hours=int(zone[1:3]), minutes=int(zone[4:6]))
        tz = timezone(-offset if zone[0] == "-" else offset)
    micros = int((fraction or "0")[:6].ljust(6, "0"))
    return datetime(*map(int, parts), micros, tzinfo=tz)


def _mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


@dataclass
class Region:
    """A cloud region and the host that serves it."""

    name: str
    host: str
    description: str = ""
    continent: str = ""


@dataclass
class Cookie:
    """An HTTP cookie kept with a session."""

    name: str = ""
    value: str = ""
    domain: str = ""
    path: str = ""
    expires: datetime = _ZERO_TIME
    secure: bool = False
    http_only: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form."""
        return {
            "name": self.name,
            "value": self.value,
            "domain": self.domain,
            "path": self.path,
            "expires": _format_time(self.expires),
            "secure": self.secure,
            "httpOnly": self.http_only,
        }

    @staticmethod
    def from_dict(data: Any) -> "Cookie":
        """Build a cookie from its JSON form; missing fields take defaults."""
        data = _mapping(data, "cookie")
        return Cookie(
            **{key: data.get(key) or "" for key in ("name", "value", "domain", "path")},
            expires=_parse_time(data.get("expires")),
            secure=bool(data.get("secure")),
            http_only=bool(data.get("httpOnly")),
        )


@dataclass
class SessionData:
    """What a login leaves behind: its result, cookies and server."""

    login_result: dict[str, Any] | None = None
    cookies: list[Cookie] = field(default_factory=list)
    last_validated: datetime = _ZERO_TIME
    server_host: str = ""
    region: str = ""
    user_email: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form."""
        return {
            "loginResult": self.login_result,
            "cookies": [cookie.to_dict() for cookie in self.cookies],
            "lastValidated": _format_time(self.last_validated),
            "serverHost": self.server_host,
            "region": self.region,
            "userEmail": self.user_email,
        }

    @staticmethod
    def from_dict(data: Any) -> "SessionData":
        """Build session data from its JSON form; missing fields take defaults."""
        data = _mapping(data, "session data")
        login_result = data.get("loginResult")
        if login_result is not None:
            _mapping(login_result, "loginResult")
        cookies = data.get("cookies") or []
        if not isinstance(cookies, list):
            raise ValueError("cookies must be a JSON array")
        return SessionData(
            login_result=login_result,
            cookies=[Cookie.from_dict(item) for item in cookies],
            last_validated=_parse_time(data.get("lastValidated")),
            server_host=data.get("serverHost") or "",
            region=data.get("region") or "",
            user_email=data.get("userEmail") or "",
        )