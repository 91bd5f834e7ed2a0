"""API response envelopes, request filters and session-based access checks."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, NamedTuple, Optional

from woaa.models import SessionAppidInfo

_log = logging.getLogger(__name__)

EXCLUDE_LOG_PATHS = frozenset(
    {
        "/api/system/user/userinfo",
        "/api/appid/session_info",
        "/api/request-log/list",
    }
)

EXCLUDE_LOGIN_PATHS = frozenset(
    {
        "/api/system/user/register",
        "/api/system/user/login",
        "/api/system/user/userinfo",
    }
)

TEMPLATE_PATH = "/wechat-official-account-admin-fe/dist/template.html"

_NIL_OBJECT_ID = "0" * 24


class ApiError(Exception):
    """A failure reported to the client as a code and a message."""

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    def to_response(self) -> dict[str, Any]:
        """Return the failure envelope for this error."""
        return fail_response(self.code, self.message)


class CurrentUser(NamedTuple):
    """The logged-in user as stored in the session."""

    user_id: str
    username: str
    admin: bool


def ok_response(data: Any) -> dict[str, Any]:
    """Return the success envelope around ``data``."""
    return {"code": 0, "message": "ok", "data": data}


def fail_response(code: int, message: str) -> dict[str, Any]:
    """Return the failure envelope."""
    return {"code": code, "message": message}


def skip_request_log(path: str) -> bool:
    """Whether a request to ``path`` is left out of the request log."""
    return not (path.startswith("/api/") and path not in EXCLUDE_LOG_PATHS)


def check_login(path: str, session: Mapping[str, Any]) -> bool:
    """Ensure the session is logged in where the path needs it.

    Returns False for paths that need no login and True once the login is
    confirmed; raises ApiError otherwise.
    """
    if path in EXCLUDE_LOGIN_PATHS:
        return False
    login = session.get("login")
    if isinstance(login, bool) or not isinstance(login, int) or login != 1:
        raise ApiError(1, "no login")
    return True


def check_appid(path: str, session: Mapping[str, Any]) -> Optional[str]:
    """Return the appid selected in the session, or None where none is needed.

    Raises ApiError when the path needs an appid and the session has none.
    """
    if path in EXCLUDE_LOGIN_PATHS or path.startswith("/api/system/"):
        return None
    app = session.get("appid")
    if not isinstance(app, SessionAppidInfo):
        raise ApiError(1, "no appid")
    return app.app_id


def no_route_response(path: str, accept: str) -> Optional[dict[str, Any]]:
    """Return the JSON answer for an unknown route.

    None means the single-page application template should be served.
    """
    if path.startswith("/api/"):
        return fail_response(1, "api not found")
    if "html" not in accept:
        return fail_response(1, "not html")
    return None


def current_user(session: Mapping[str, Any]) -> CurrentUser:
    """Return the user stored in the session.

    Raises ApiError when the session holds no user.
    """
    raw = session.get("user")
    if not isinstance(raw, str):
        raise ApiError(1, "no login")
    try:
        user = json.loads(raw)
    except ValueError as exc:
        _log.warning("session user could not be decoded: %s", exc)
        user = {}
    if not isinstance(user, dict):
        user = {}
    user_id = user.get("id") or user.get("_id") or _NIL_OBJECT_ID
    return CurrentUser(
        user_id=str(user_id),
        username=str(user.get("username", "")),
        admin=user.get("user_type") == "admin",
    )


def is_admin(session: Mapping[str, Any]) -> bool:
    """Whether the logged-in user is an administrator."""
    return current_user(session).admin