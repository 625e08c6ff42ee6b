"""On-disk store of user sessions and the camera registry."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Iterable

from tuyaipc.session import _ZERO_TIME, SessionData, _format_time, _parse_time

DATA_DIR_NAME = ".tuya-data"
CAMERA_REGISTRY_FILE = "cameras.json"
# The session cookie appears to expire after four days.
SESSION_LIFETIME = timedelta(days=4)


def user_key(region: str, email: str) -> str:
    """Return the file-safe key of a user in a region."""
    safe_email = email.replace("@", "_at_").replace(".", "_")
    return f"{region}_{safe_email}"


def _object(data: Any, what: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what} must be a JSON object")
    return data


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass
class UserSession:
    """A stored login of one user."""

    region: str = ""
    email: str = ""
    session_data: SessionData | None = None
    last_refresh: datetime = _ZERO_TIME
    user_key: str = ""

    def _to_dict(self) -> dict[str, Any]:
        return {
            "region": self.region,
            "email": self.email,
            "sessionData": None if self.session_data is None else self.session_data.to_dict(),
            "lastRefresh": _format_time(self.last_refresh),
            "userKey": self.user_key,
        }

    @staticmethod
    def _from_dict(data: Any) -> "UserSession":
        data = _object(data, "user session")
        session_data = data.get("sessionData")
        return UserSession(
            region=data.get("region") or "",
            email=data.get("email") or "",
            session_data=None if session_data is None else SessionData.from_dict(session_data),
            last_refresh=_parse_time(data.get("lastRefresh")),
            user_key=data.get("userKey") or "",
        )


_CAMERA_FIELDS = {
    "user_key": "userKey",
    "device_id": "deviceId",
    "device_name": "deviceName",
    "category": "category",
    "rtsp_path": "rtspPath",
    "product_id": "productId",
    "uuid": "uuid",
    "skill": "skill",
}


@dataclass
class CameraInfo:
    """A camera of a user and the RTSP path it is served on."""

    user_key: str = ""
    device_id: str = ""
    device_name: str = ""
    category: str = ""
    rtsp_path: str = ""
    product_id: str = ""
    uuid: str = ""
    skill: str = ""

    def _to_dict(self) -> dict[str, str]:
        return {key: getattr(self, attr) for attr, key in _CAMERA_FIELDS.items()}

    @staticmethod
    def _from_dict(data: Any) -> "CameraInfo":
        data = _object(data, "camera")
        return CameraInfo(**{attr: data.get(key) or "" for attr, key in _CAMERA_FIELDS.items()})


@dataclass
class CameraRegistry:
    """All known cameras of all users."""

    cameras: list[CameraInfo] = field(default_factory=list)
    last_updated: datetime = _ZERO_TIME

    def _to_dict(self) -> dict[str, Any]:
        return {
            "cameras": [camera._to_dict() for camera in self.cameras],
            "lastUpdated": _format_time(self.last_updated),
        }

    @staticmethod
    def _from_dict(data: Any) -> "CameraRegistry":
        data = _object(data, "camera registry")
        cameras = data.get("cameras") or []
        if not isinstance(cameras, list):
            raise ValueError("cameras must be a JSON array")
        return CameraRegistry(
            cameras=[CameraInfo._from_dict(item) for item in cameras],
            last_updated=_parse_time(data.get("lastUpdated")),
        )


def _write_private(path: Path, payload: dict[str, Any]) -> None:
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(text)


def _read_json(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON in {path}: {exc}") from exc


class StorageManager:
    """Keeps user sessions and cameras as JSON files in a private data directory."""

    def __init__(self, base_dir: str | os.PathLike[str] | None = None) -> None:
        base = Path.cwd() if base_dir is None else Path(base_dir)
        self._data_dir = base / DATA_DIR_NAME
        self._data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _user_file(self, region: str, email: str) -> Path:
        return self._data_dir / f"user_{user_key(region, email)}.json"

    def _registry_file(self) -> Path:
        return self._data_dir / CAMERA_REGISTRY_FILE

    def list_users(self) -> list[UserSession]:
        """Return every stored user; unreadable or malformed files are skipped."""
        users = []
        for path in sorted(self._data_dir.glob("user_*.json")):
            try:
                users.append(UserSession._from_dict(_read_json(path)))
            except (OSError, ValueError, UnicodeDecodeError):
                continue
        return users

    def get_user(self, region: str, email: str) -> UserSession | None:
        """Return the stored user, or None if there is none."""
        try:
            data = _read_json(self._user_file(region, email))
        except FileNotFoundError:
            return None
        return UserSession._from_dict(data)

    def save_user(self, region: str, email: str, session_data: SessionData | None) -> None:
        """Store a user's session, stamped with the current time."""
        user = UserSession(
            region=region,
            email=email,
            session_data=session_data,
            last_refresh=datetime.now().astimezone(),
            user_key=user_key(region, email),
        )
        _write_private(self._user_file(region, email), user._to_dict())

    def remove_user(self, region: str, email: str) -> None:
        """Delete a user's session and the user's cameras."""
        self._user_file(region, email).unlink(missing_ok=True)
        self._replace_cameras(user_key(region, email), ())

    def get_camera_registry(self) -> CameraRegistry:
        """Return the registry, or an empty one if none is stored."""
        try:
            data = _read_json(self._registry_file())
        except FileNotFoundError:
            return CameraRegistry()
        return CameraRegistry._from_dict(data)

    def save_camera_registry(self, registry: CameraRegistry) -> None:
        """Store the registry, stamping it with the current time."""
        registry.last_updated = datetime.now().astimezone()
        _write_private(self._registry_file(), registry._to_dict())

    def _replace_cameras(self, key: str, cameras: Iterable[CameraInfo]) -> None:
        registry = self.get_camera_registry()
        registry.cameras = [cam for cam in registry.cameras if cam.user_key != key]
        registry.cameras.extend(cameras)
        self.save_camera_registry(registry)

    def update_cameras_for_user(self, user_key: str, cameras: Iterable[CameraInfo]) -> None:
        """Replace the cameras of one user with ``cameras``."""
        self._replace_cameras(user_key, cameras)

    def get_cameras_for_user(self, user_key: str) -> list[CameraInfo]:
        """Return the cameras of one user."""
        return [cam for cam in self.get_camera_registry().cameras if cam.user_key == user_key]

    def get_all_cameras(self) -> list[CameraInfo]:
        """Return every camera in the registry."""
        return self.get_camera_registry().cameras

    def generate_rtsp_path(self, device_name: str, device_id: str) -> str:
        """Return a URL-safe RTSP path from the device name, or its id if the name is empty."""
        safe_name = device_name.replace(" ", "_").replace("/", "_").replace("\\", "_")
        if safe_name in ("", "_"):
            safe_name = device_id
        return f"/{safe_name}"

    def validate_user_session(self, region: str, email: str) -> bool:
        """Tell whether a stored session exists and is younger than four days."""
        user = self.get_user(region, email)
        if user is None:
            return False
        age = datetime.now(timezone.utc) - _aware(user.last_refresh)
        return age <= SESSION_LIFETIME