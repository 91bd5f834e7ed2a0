"""Rules for the subscribe, keyword and message automatic replies."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from woaa.access import ApiError
from woaa.models import AutoReplyData

REPLY_TYPES = ("subscribe", "keyword", "message")

_PARAM_ERROR = "参数错误"


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


@dataclass
class KeywordDef:
    """One keyword of a keyword reply and whether it must match exactly."""

    keyword: str = ""
    exact: bool = False


def _keyword_def_from(data: Any) -> KeywordDef:
    if not isinstance(data, Mapping):
        raise ApiError(400, _PARAM_ERROR)
    keyword = data.get("keyword", "")
    exact = data.get("exact", False)
    if keyword is None:
        keyword = ""
    if exact is None:
        exact = False
    if not isinstance(keyword, str) or not isinstance(exact, bool):
        raise ApiError(400, _PARAM_ERROR)
    return KeywordDef(keyword=keyword, exact=exact)


def _keyword_def_dict(item: KeywordDef) -> dict[str, Any]:
    return {"keyword": item.keyword, "exact": item.exact}


def check_reply_type(reply_type: Any) -> str:
    """Return the reply type if it is one of subscribe, keyword or message; raise ApiError(400) otherwise."""
    if not isinstance(reply_type, str) or reply_type not in REPLY_TYPES:
        raise ApiError(400, _PARAM_ERROR)
    return reply_type


def _optional_text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ApiError(400, _PARAM_ERROR)
    return value


@dataclass
class AutoReplySaveForm:
    """A submitted automatic reply; with an id it updates an existing one."""

    reply_type: str
    reply_data: AutoReplyData
    id: str = ""
    rule_title: str = ""
    keywords: Optional[list[str]] = None
    keywords_def: Optional[list[KeywordDef]] = field(default=None)

    @classmethod
    def from_dict(cls, data: Any) -> "AutoReplySaveForm":
        """Validate a submitted form; raises ApiError(400) when it is incomplete or wrong."""
        if not isinstance(data, Mapping):
            raise ApiError(400, _PARAM_ERROR)
        reply_type = check_reply_type(data.get("reply_type"))
        raw_reply = data.get("reply_data")
        if not isinstance(raw_reply, Mapping):
            raise ApiError(400, _PARAM_ERROR)
        try:
            reply_data = AutoReplyData.from_dict(dict(raw_reply))
        except (AttributeError, TypeError, ValueError) as exc:
            raise ApiError(400, _PARAM_ERROR) from exc

        keywords = data.get("keywords")
        if keywords is not None:
            if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
                raise ApiError(400, _PARAM_ERROR)
            keywords = list(keywords)

        raw_defs = data.get("keywords_def")
        keywords_def = None
        if raw_defs is not None:
            if not isinstance(raw_defs, list):
                raise ApiError(400, _PARAM_ERROR)
            keywords_def = [_keyword_def_from(item) for item in raw_defs]

        return cls(
            reply_type=reply_type,
            reply_data=reply_data,
            id=_optional_text(data, "id"),
            rule_title=_optional_text(data, "rule_title"),
            keywords=keywords,
            keywords_def=keywords_def,
        )

    def _reply_data_text(self) -> str:
        return _dumps(self.reply_data.to_dict())

    def _keywords_def_text(self) -> str:
        if self.keywords_def is None:
            return "null"
        return _dumps([_keyword_def_dict(item) for item in self.keywords_def])

    def update_document(self) -> dict[str, Any]:
        """Return the update applied when saving; keyword replies also set their rule fields."""
        fields: dict[str, Any] = {"reply_data": self._reply_data_text()}
        if self.reply_type == "keyword":
            fields["rule_title"] = self.rule_title
            fields["keywords"] = self.keywords
            fields["keywords_def"] = self._keywords_def_text()
        return {"$set": fields}

    def insert_document(self, appid: str) -> dict[str, Any]:
        """Return the document stored for a new reply of ``appid``."""
        return {
            "appid": appid,
            "reply_type": self.reply_type,
            "reply_data": self._reply_data_text(),
            "rule_title": self.rule_title,
            "keywords": self.keywords,
            "keywords_def": self._keywords_def_text(),
        }


def search_filter(appid: str, reply_type: str, search: str) -> dict[str, Any]:
    """Return the query for the replies of one type, matching ``search`` in title or keywords."""
    check_reply_type(reply_type)
    query: dict[str, Any] = {"appid": appid, "reply_type": reply_type}
    if search:
        query["$or"] = [
            {"rule_title": {"$regex": search}},
            {"keywords": {"$regex": search}},
        ]
    return query


def single_reply_filter(appid: str, reply_type: str) -> dict[str, Any]:
    """Return the query for the single subscribe or message reply of an account."""
    return {"appid": appid, "reply_type": reply_type}


def list_item(doc: Mapping[str, Any]) -> dict[str, Any]:
    """Turn a stored reply into the item shown in the list.

    Raises ApiError(500) when the stored reply data or keyword rules cannot be decoded.
    """
    doc_id = str(doc.get("_id", doc.get("id", "")))
    try:
        raw = json.loads(doc.get("reply_data") or "")
        if not isinstance(raw, dict):
            raise ValueError("reply data is not an object")
        reply_data = AutoReplyData.from_dict(raw)
    except (AttributeError, TypeError, ValueError) as exc:
        raise ApiError(500, "解析replydata失败:" + doc_id) from exc

    keywords_def = None
    raw_defs = doc.get("keywords_def") or ""
    if raw_defs:
        try:
            parsed = json.loads(raw_defs)
            if parsed is not None:
                if not isinstance(parsed, list):
                    raise ValueError("keywords_def is not a list")
                parsed = [_keyword_def_dict(_keyword_def_from(item)) for item in parsed]
        except (ApiError, TypeError, ValueError) as exc:
            raise ApiError(500, "转换keywordsdef失败") from exc
        keywords_def = parsed

    return {
        "id": doc_id,
        "reply_type": doc.get("reply_type", ""),
        "reply_data": reply_data.to_dict(),
        "rule_title": doc.get("rule_title", ""),
        "keywords": doc.get("keywords"),
        "keywords_def": keywords_def,
        "created_at": doc.get("created_at"),
    }


def enabled_update(appid: str, reply_type: str, enabled: bool) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (query, update) switching every reply of one type on or off."""
    check_reply_type(reply_type)
    if not isinstance(enabled, bool):
        raise ApiError(400, _PARAM_ERROR)
    return (
        {"appid": appid, "reply_type": reply_type},
        {"$set": {"enabled": enabled}},
    )