"""Data records shared across the application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


@dataclass
class SessionAppidInfo:
    """The official account chosen in a user's session."""

    app_type: str = ""
    name: str = ""
    app_id: str = ""
    app_secret: str = ""
    token: str = ""
    encoding_aes_key: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionAppidInfo":
        return cls(
            app_type=data.get("app_type", ""),
            name=data.get("name", ""),
            app_id=data.get("appid", ""),
            app_secret=data.get("appsecret", ""),
            token=data.get("token", ""),
            encoding_aes_key=data.get("encoding_aes_key", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "app_type": self.app_type,
            "name": self.name,
            "appid": self.app_id,
            "appsecret": self.app_secret,
            "token": self.token,
            "encoding_aes_key": self.encoding_aes_key,
        }


def _parse_time(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


@dataclass
class RequestLogInfo:
    """One logged API request."""

    appid: str = ""
    time: Optional[datetime] = None
    status: int = 0
    latency: float = 0.0
    ip: str = ""
    method: str = ""
    path: str = ""
    query: str = ""
    body: str = ""
    user_agent: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RequestLogInfo":
        """Build from a decoded log line; the time may be ISO text, epoch seconds or a datetime."""
        return cls(
            appid=data.get("appid", ""),
            time=_parse_time(data.get("time")),
            status=int(data.get("status", 0)),
            latency=float(data.get("latency", 0.0)),
            ip=data.get("ip", ""),
            method=data.get("method", ""),
            path=data.get("path", ""),
            query=data.get("query", ""),
            body=data.get("body", ""),
            user_agent=data.get("user-agent", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a document; the time stays a datetime."""
        return {
            "appid": self.appid,
            "time": self.time,
            "status": self.status,
            "latency": self.latency,
            "ip": self.ip,
            "method": self.method,
            "path": self.path,
            "query": self.query,
            "body": self.body,
            "user-agent": self.user_agent,
        }


@dataclass
class AutoReplyArticle:
    """One article of a news reply."""

    title: str = ""
    description: str = ""
    pic_url: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutoReplyArticle":
        return cls(
            title=data.get("title", ""),
            description=data.get("description", ""),
            pic_url=data.get("pic_url", ""),
            url=data.get("url", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "pic_url": self.pic_url,
            "url": self.url,
        }


@dataclass
class AutoReplyMessage:
    """One message sent in reply to a user."""

    msg_type: str = ""
    content: str = ""
    media_id: str = ""
    title: str = ""
    description: str = ""
    music_url: str = ""
    hq_music_url: str = ""
    thumb_media_id: str = ""
    articles: list[AutoReplyArticle] = field(default_factory=list)
    article_id: str = ""
    card_id: str = ""
    app_id: str = ""
    page_path: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutoReplyMessage":
        return cls(
            msg_type=data.get("msg_type", ""),
            content=data.get("content", ""),
            media_id=data.get("media_id", ""),
            title=data.get("title", ""),
            description=data.get("description", ""),
            music_url=data.get("music_url", ""),
            hq_music_url=data.get("hq_music_url", ""),
            thumb_media_id=data.get("thumb_media_id", ""),
            articles=[AutoReplyArticle.from_dict(a) for a in data.get("articles") or []],
            article_id=data.get("article_id", ""),
            card_id=data.get("card_id", ""),
            app_id=data.get("appid", ""),
            page_path=data.get("page_path", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "msg_type": self.msg_type,
            "content": self.content,
            "media_id": self.media_id,
            "title": self.title,
            "description": self.description,
            "music_url": self.music_url,
            "hq_music_url": self.hq_music_url,
            "thumb_media_id": self.thumb_media_id,
            "articles": [a.to_dict() for a in self.articles],
            "article_id": self.article_id,
            "card_id": self.card_id,
            "appid": self.app_id,
            "page_path": self.page_path,
        }


@dataclass
class AutoReplyData:
    """The messages of an automatic reply and whether all of them are sent."""

    reply_all: bool = False
    msg_list: list[AutoReplyMessage] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AutoReplyData":
        return cls(
            reply_all=bool(data.get("reply_all", False)),
            msg_list=[AutoReplyMessage.from_dict(m) for m in data.get("msg_list") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "reply_all": self.reply_all,
            "msg_list": [m.to_dict() for m in self.msg_list],
        }