"""Per-account API clients and delivery of automatic replies."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from woaa.lru import LRUCache
from woaa.models import AutoReplyArticle, AutoReplyMessage

_log = logging.getLogger(__name__)

MAX_CLIENTS = 2

PASSIVE_REPLY_TYPES = frozenset({"text", "image", "voice", "video", "music", "news"})


class ClientRegistry:
    """Builds and caches the API client and message handler of each account."""

    def __init__(
        self,
        options_loader: Callable[[str], Optional[Any]],
        api_factory: Callable[[Any], Any],
        handler_factory: Callable[[Any, Any], Any],
        max_count: int = MAX_CLIENTS,
    ):
        self._options_loader = options_loader
        self._api_factory = api_factory
        self._handler_factory = handler_factory
        self._apis: LRUCache[Any] = LRUCache(max_count, self._create_api)
        self._handlers: LRUCache[Any] = LRUCache(max_count, self._create_handler)

    def _options(self, appid: str) -> Any:
        options = self._options_loader(appid)
        if options is None:
            raise LookupError("appid not found")
        return options

    def _create_api(self, appid: str) -> Any:
        return self._api_factory(self._options(appid))

    def _create_handler(self, appid: str) -> Any:
        options = self._options(appid)
        return self._handler_factory(options, self._api_factory(options))

    def api_client(self, appid: str) -> Any:
        """Return the API client for ``appid``; raises LookupError for unknown accounts."""
        return self._apis.get(appid)

    def msg_handler(self, appid: str) -> Any:
        """Return the message handler for ``appid``; raises LookupError for unknown accounts."""
        return self._handlers.get(appid)


def _articles(msg: AutoReplyMessage) -> list[AutoReplyArticle]:
    return [
        AutoReplyArticle(title=a.title, description=a.description, pic_url=a.pic_url, url=a.url)
        for a in msg.articles
    ]


def reply_message(rc: Any, msg: AutoReplyMessage) -> None:
    """Answer in the response body; unsupported types are ignored."""
    kind = msg.msg_type
    if kind == "text":
        rc.reply_text(msg.content)
    elif kind == "image":
        rc.reply_image(msg.media_id)
    elif kind == "voice":
        rc.reply_voice(msg.media_id)
    elif kind == "video":
        rc.reply_video(msg.media_id, msg.title, msg.description)
    elif kind == "music":
        rc.reply_music(msg.title, msg.description, msg.music_url, msg.hq_music_url, msg.thumb_media_id)
    elif kind == "news":
        rc.reply_news(_articles(msg))


def send_message(rc: Any, msg: AutoReplyMessage) -> None:
    """Send through the customer-service API; errors from ``rc`` are raised."""
    kind = msg.msg_type
    if kind == "text":
        rc.send_text(msg.content)
    elif kind == "image":
        rc.send_image(msg.media_id)
    elif kind == "voice":
        rc.send_voice(msg.media_id)
    elif kind == "video":
        rc.send_video(msg.media_id, "thumb_media_id", msg.title, msg.description)
    elif kind == "music":
        rc.send_music(msg.title, msg.description, msg.music_url, msg.hq_music_url, msg.thumb_media_id)
    elif kind == "news":
        rc.send_news(_articles(msg))
    elif kind == "mpnews":
        rc.send_mp_news(msg.media_id)
    elif kind == "mpnewsarticle":
        rc.send_mp_news_article(msg.article_id)
    elif kind == "wxcard":
        rc.send_wx_card(msg.card_id)
    elif kind == "miniprogrampage":
        rc.send_mini_program_page(msg.title, msg.app_id, msg.page_path, msg.thumb_media_id)


def deliver_messages(rc: Any, messages: Iterable[AutoReplyMessage]) -> bool:
    """Reply passively with the first message if its type allows, send the rest.

    Returns whether a passive reply was written; failed sends are logged.
    """
    replied = False
    for index, msg in enumerate(messages):
        if index == 0 and msg.msg_type in PASSIVE_REPLY_TYPES:
            reply_message(rc, msg)
            replied = True
            continue
        try:
            send_message(rc, msg)
        except Exception as exc:
            _log.warning("send message %d failed: %s", index, exc)
    return replied