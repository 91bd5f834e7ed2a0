import json

import pytest

from woaa.access import (
    ApiError,
    check_appid,
    check_login,
    current_user,
    fail_response,
    is_admin,
    no_route_response,
    ok_response,
    skip_request_log,
)
from woaa.models import SessionAppidInfo


def test_ok_response_envelope():
    assert ok_response({"a": 1}) == {"code": 0, "message": "ok", "data": {"a": 1}}


def test_fail_response_envelope():
    assert fail_response(500, "boom") == {"code": 500, "message": "boom"}


def test_api_error_to_response():
    err = ApiError(1, "no login")
    assert err.to_response() == fail_response(1, "no login")
    assert str(err) == "no login"
    assert err.code == 1


@pytest.mark.parametrize(
    "path, skipped",
    [
        ("/api/system/user/userinfo", True),
        ("/api/appid/session_info", True),
        ("/api/request-log/list", True),
        ("/api/menu/get", False),
        ("/index.html", True),
    ],
)
def test_skip_request_log(path, skipped):
    assert skip_request_log(path) is skipped


def test_check_login_excluded_path_needs_nothing():
    assert check_login("/api/system/user/login", {}) is False


def test_check_login_accepts_logged_in_session():
    assert check_login("/api/menu/get", {"login": 1}) is True


@pytest.mark.parametrize("session", [{}, {"login": 2}, {"login": True}, {"login": "1"}])
def test_check_login_rejects(session):
    with pytest.raises(ApiError) as info:
        check_login("/api/menu/get", session)
    assert info.value.message == "no login"
    assert info.value.code == 1


def test_check_appid_system_path_is_exempt():
    assert check_appid("/api/system/appid/list", {}) is None
    assert check_appid("/api/system/user/register", {}) is None


def test_check_appid_returns_selected_app():
    session = {"appid": SessionAppidInfo(app_id="wx123", name="demo")}
    assert check_appid("/api/menu/get", session) == "wx123"


@pytest.mark.parametrize("session", [{}, {"appid": {"appid": "wx123"}}])
def test_check_appid_rejects_missing(session):
    with pytest.raises(ApiError) as info:
        check_appid("/api/menu/get", session)
    assert info.value.message == "no appid"


def test_no_route_api_path():
    assert no_route_response("/api/unknown", "text/html") == fail_response(1, "api not found")


def test_no_route_not_html():
    assert no_route_response("/page", "application/json") == fail_response(1, "not html")


def test_no_route_serves_template_for_html():
    assert no_route_response("/page", "text/html,application/xhtml+xml") is None


def test_current_user_decodes_session():
    session = {"user": json.dumps({"id": "u1", "username": "admin", "user_type": "admin"})}
    user = current_user(session)
    assert user == ("u1", "admin", True)
    assert is_admin(session) is True


def test_current_user_non_admin():
    session = {"user": json.dumps({"id": "u2", "username": "guest", "user_type": "normal"})}
    assert current_user(session).username == "guest"
    assert is_admin(session) is False


def test_current_user_bad_json_is_empty_user():
    user = current_user({"user": "{not json"})
    assert user.username == ""
    assert user.admin is False


def test_current_user_missing_raises():
    with pytest.raises(ApiError):
        current_user({})