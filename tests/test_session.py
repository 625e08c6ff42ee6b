import json
from datetime import datetime, timedelta, timezone

import pytest

from tuyaipc.session import Cookie, Region, SessionData


def _cookie():
    return Cookie(
        name="sid",
        value="token",
        domain="example.com",
        path="/",
        expires=datetime(2030, 6, 1, 8, 30, 15, 250000, tzinfo=timezone.utc),
        secure=True,
        http_only=True,
    )


def test_cookie_round_trip():
    cookie = _cookie()
    assert Cookie.from_dict(cookie.to_dict()) == cookie


def test_cookie_json_keys():
    data = _cookie().to_dict()
    assert set(data) == {"name", "value", "domain", "path", "expires", "secure", "httpOnly"}
    assert data["httpOnly"] is True


def test_cookie_survives_json_text():
    cookie = _cookie()
    text = json.dumps(cookie.to_dict())
    assert Cookie.from_dict(json.loads(text)) == cookie


def test_zero_time_format():
    assert Cookie().to_dict()["expires"] == "0001-01-01T00:00:00Z"


def test_missing_fields_use_defaults():
    cookie = Cookie.from_dict({"name": "a"})
    assert cookie.name == "a"
    assert cookie.expires == Cookie().expires
    assert cookie.secure is False


def test_nanosecond_timestamp_is_truncated():
    cookie = Cookie.from_dict({"expires": "2024-05-01T12:30:45.123456789Z"})
    assert cookie.expires.microsecond == 123456
    assert cookie.expires.tzinfo is not None


def test_offset_timestamp_round_trip():
    tz = timezone(timedelta(hours=2))
    cookie = Cookie(expires=datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz))
    text = cookie.to_dict()["expires"]
    assert text.endswith("+02:00")
    assert Cookie.from_dict(cookie.to_dict()).expires == cookie.expires


def test_bad_timestamp_raises():
    with pytest.raises(ValueError):
        Cookie.from_dict({"expires": "yesterday"})


def test_cookie_not_object_raises():
    with pytest.raises(ValueError):
        Cookie.from_dict([1, 2])


def test_session_data_round_trip():
    session = SessionData(
        login_result={"uid": "user-1", "nickname": "someone"},
        cookies=[_cookie()],
        last_validated=datetime(2024, 3, 3, 10, 0, 0, tzinfo=timezone.utc),
        server_host="example.com",
        region="eu",
        user_email="user@example.com",
    )
    restored = SessionData.from_dict(json.loads(json.dumps(session.to_dict())))
    assert restored == session


def test_session_data_null_cookies():
    session = SessionData.from_dict({"cookies": None, "region": "us"})
    assert session.cookies == []
    assert session.region == "us"
    assert session.login_result is None


def test_session_data_bad_cookies_raise():
    with pytest.raises(ValueError):
        SessionData.from_dict({"cookies": "oops"})


def test_region_fields():
    region = Region(name="eu", host="example.com", description="Europe", continent="EU")
    assert region.host == "example.com"
    assert region == Region("eu", "example.com", "Europe", "EU")