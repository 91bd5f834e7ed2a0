"""Queries and forms for QR codes and the request log."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, NamedTuple

from woaa.access import ApiError

QRCODE_TYPES = ("temp", "limit")


class ListQuery(NamedTuple):
    """A paged, sorted database query."""

    filter: dict[str, Any]
    skip: int
    limit: int
    sort: list[tuple[str, int]]


def _required_int(value: Any, name: str) -> int:
    if value is None or value == "":
        raise ApiError(1, f"{name} is required")
    if isinstance(value, bool):
        raise ApiError(1, f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError as exc:
            raise ApiError(1, f"{name} must be an integer") from exc
    raise ApiError(1, f"{name} must be an integer")


def _optional_int(data: Mapping[str, Any], name: str) -> int:
    value = data.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ApiError(1, f"{name} must be an integer")
    return value


def _text(data: Mapping[str, Any], name: str, required: bool = False) -> str:
    value = data.get(name)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ApiError(1, f"{name} must be a string")
    if required and not value:
        raise ApiError(1, f"{name} is required")
    return value


def _check_qrcode_type(qrcode_type: Any) -> str:
    if qrcode_type not in QRCODE_TYPES:
        raise ApiError(1, "qrcode_type must be temp or limit")
    return qrcode_type


@dataclass
class QrcodeCreateForm:
    """A request for a temporary or permanent QR code."""

    qrcode_type: str
    title: str
    scene_str: str = ""
    scene_id: int = 0
    expire_seconds: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> "QrcodeCreateForm":
        """Validate a submitted form; raises ApiError(1) when it is incomplete or wrong."""
        if not isinstance(data, Mapping):
            raise ApiError(1, "invalid form")
        qrcode_type = _text(data, "qrcode_type", required=True)
        title = _text(data, "title", required=True)
        form = cls(
            qrcode_type=qrcode_type,
            title=title,
            scene_str=_text(data, "scene_str"),
            scene_id=_optional_int(data, "scene_id"),
            expire_seconds=_optional_int(data, "expire_seconds"),
        )
        _check_qrcode_type(form.qrcode_type)
        if not form.scene_str and form.scene_id == 0:
            raise ApiError(1, "scene_str or scene_id is required")
        return form

    def document(self, appid: str, ticket: str, expire_seconds: int, url: str) -> dict[str, Any]:
        """Return the record stored for a QR code the platform created."""
        return {
            "appid": appid,
            "qrcode_type": self.qrcode_type,
            "scene_str": self.scene_str,
            "scene_id": self.scene_id,
            "title": self.title,
            "ticket": ticket,
            "expire_seconds": expire_seconds,
            "url": url,
        }


def qrcode_list_query(appid: str, qrcode_type: Any, keyword: str, offset: Any, count: Any) -> ListQuery:
    """Return the newest-first query for QR codes whose title or scene matches ``keyword``."""
    skip = _required_int(offset, "offset")
    limit = _required_int(count, "count")
    if not qrcode_type:
        raise ApiError(1, "qrcode_type is required")
    _check_qrcode_type(qrcode_type)
    keyword = keyword or ""
    query = {
        "appid": appid,
        "qrcode_type": qrcode_type,
        "$or": [
            {"title": {"$regex": keyword}},
            {"scene_str": {"$regex": keyword}},
        ],
    }
    return ListQuery(query, skip, limit, [("created_at", -1)])


def request_log_query(appid: str, keyword: str, offset: Any, count: Any) -> ListQuery:
    """Return the newest-first query for logged requests whose path or query matches ``keyword``."""
    skip = _required_int(offset, "offset")
    limit = _required_int(count, "count")
    query: dict[str, Any] = {"appid": appid}
    if keyword:
        query["$or"] = [
            {"path": {"$regex": keyword}},
            {"query": {"$regex": keyword}},
        ]
    return ListQuery(query, skip, limit, [("time", -1)])