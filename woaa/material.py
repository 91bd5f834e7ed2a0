"""Rules for listing, storing, uploading and deleting media material."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional

from woaa.access import ApiError

_PARAM_ERROR = "参数错误"

TEMP_MATERIAL_LIFETIME = timedelta(hours=72)


def _text(data: Mapping[str, Any], key: str, required: bool = False) -> str:
    value = data.get(key, "")
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ApiError(400, _PARAM_ERROR)
    if required and not value:
        raise ApiError(400, _PARAM_ERROR)
    return value


def _integer(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ApiError(400, _PARAM_ERROR)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value, 10)
        except ValueError as exc:
            raise ApiError(400, _PARAM_ERROR) from exc
    raise ApiError(400, _PARAM_ERROR)


def _mapping(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ApiError(400, _PARAM_ERROR)
    return data


@dataclass
class MaterialUploadForm:
    """An uploaded media file; the category defaults to permanent."""

    media_type: str
    file: Any
    media_cat: str = "perm"
    title: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> "MaterialUploadForm":
        """Validate an upload form; raises ApiError(400) without a media type or file."""
        data = _mapping(data)
        media_type = _text(data, "media_type", required=True)
        file = data.get("file")
        if file is None:
            raise ApiError(400, _PARAM_ERROR)
        return cls(
            media_type=media_type,
            file=file,
            media_cat=_text(data, "media_cat") or "perm",
            title=_text(data, "title"),
            description=_text(data, "description"),
        )


def parse_source_form(params: Any) -> tuple[str, str, str]:
    """Return (media_cat, media_type, media_id) from query parameters; all are required."""
    params = _mapping(params)
    media_cat = _text(params, "media_cat", required=True)
    media_type = _text(params, "media_type", required=True)
    media_id = _text(params, "media_id", required=True)
    return media_cat, media_type, media_id


def parse_list_form(params: Any) -> tuple[str, str, int, int]:
    """Return (media_cat, media_type, offset, count) from query parameters."""
    params = _mapping(params)
    media_cat = _text(params, "media_cat", required=True)
    media_type = _text(params, "media_type", required=True)
    return media_cat, media_type, _integer(params, "offset"), _integer(params, "count")


def parse_delete_form(data: Any) -> tuple[str, str]:
    """Return (media_cat, media_id); the category defaults to permanent."""
    data = _mapping(data)
    media_id = _text(data, "media_id", required=True)
    media_cat = _text(data, "media_cat") or "perm"
    return media_cat, media_id


def uses_local_list(media_cat: str, media_type: str) -> bool:
    """Whether the list comes from the local database rather than the platform.

    Temporary material and permanent thumbnails cannot be listed remotely.
    """
    return media_cat == "temp" or (media_cat == "perm" and media_type == "thumb")


def temp_expires_at(created_at: int) -> datetime:
    """Return when temporary material created at ``created_at`` (epoch seconds) expires."""
    return datetime.fromtimestamp(created_at, tz=timezone.utc) + TEMP_MATERIAL_LIFETIME


def material_filter(appid: str, media_type: str, media_id: str) -> dict[str, Any]:
    """Return the query for one stored material."""
    return {"appid": appid, "media_type": media_type, "media_id": media_id}


def material_update(
    media_cat: str,
    media_type: str,
    file_path: str,
    file_url_path: str,
    url: str,
    title: str,
    description: str,
    expires_at: Optional[datetime],
) -> dict[str, Any]:
    """Return the upsert update storing a material's local copy and platform details."""
    fields: dict[str, Any] = {
        "media_cat": media_cat,
        "file_path": file_path,
        "file_url_path": file_url_path,
        "wx_url": url,
    }
    if media_type == "video":
        fields["title"] = title
        fields["description"] = description
    if media_cat == "temp":
        fields["expires_at"] = expires_at
    return {"$set": fields}


def delete_filter(appid: str, media_cat: str, media_id: str) -> dict[str, Any]:
    """Return the query for the material removed by a delete."""
    return {"appid": appid, "media_cat": media_cat, "media_id": media_id}


def _item(
    id_: str,
    media_cat: str,
    media_type: str,
    media_id: str,
    name: str,
    wx_url: str,
    expires_at: Optional[datetime],
    news_item: Any,
) -> dict[str, Any]:
    return {
        "id": id_,
        "media_cat": media_cat,
        "media_type": media_type,
        "media_id": media_id,
        "name": name,
        "wx_url": wx_url,
        "expires_at": expires_at,
        "content": {"news_item": news_item},
    }


def local_list_item(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Turn a stored material into a list item."""
    return _item(
        str(doc.get("_id", doc.get("id", ""))),
        doc.get("media_cat", ""),
        doc.get("media_type", ""),
        doc.get("media_id", ""),
        "",
        doc.get("wx_url", ""),
        doc.get("expires_at"),
        None,
    )


def remote_list_item(item: Mapping[str, Any], media_cat: str, media_type: str) -> dict[str, Any]:
    """Turn a material listed by the platform into a list item."""
    content = item.get("content") or {}
    news_item = content.get("news_item") if isinstance(content, Mapping) else None
    return _item(
        "",
        media_cat,
        media_type,
        item.get("media_id", ""),
        item.get("name", ""),
        item.get("url", ""),
        None,
        news_item,
    )