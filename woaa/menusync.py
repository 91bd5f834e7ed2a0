"""Menu buttons and the rules that turn a platform menu into a local one."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, MutableMapping, MutableSet, Optional

from woaa.models import AutoReplyArticle, AutoReplyData, AutoReplyMessage

_log = logging.getLogger(__name__)

KeyGenerator = Callable[[], str]

_REPLY_ITEM_TYPES = frozenset({"text", "img", "voice", "video", "news"})


@dataclass
class NewsInfoItem:
    """One article attached to a news menu button."""

    title: str = ""
    digest: str = ""
    cover_url: str = ""
    content_url: str = ""


def _news_item(data: Mapping[str, Any]) -> NewsInfoItem:
    return NewsInfoItem(
        title=data.get("title", "") or "",
        digest=data.get("digest", "") or "",
        cover_url=data.get("cover_url", "") or "",
        content_url=data.get("content_url", "") or "",
    )


def _listed(value: Any) -> list[Any]:
    """Accept both ``{"list": [...]}`` and a plain list."""
    if isinstance(value, Mapping):
        value = value.get("list")
    return list(value or [])


@dataclass
class MenuButton:
    """A menu button, possibly holding a list of sub-buttons."""

    name: str = ""
    type: str = ""
    key: str = ""
    value: str = ""
    url: str = ""
    app_id: str = ""
    page_path: str = ""
    news_info: list[NewsInfoItem] = field(default_factory=list)
    sub_buttons: list["MenuButton"] = field(default_factory=list)

    @classmethod
    def from_wx_dict(cls, data: Mapping[str, Any]) -> "MenuButton":
        """Build from a button as the platform reports its current menu."""
        return cls(
            name=data.get("name", "") or "",
            type=data.get("type", "") or "",
            key=data.get("key", "") or "",
            value=data.get("value", "") or "",
            url=data.get("url", "") or "",
            app_id=data.get("appid", "") or "",
            page_path=data.get("pagepath", "") or "",
            news_info=[_news_item(item) for item in _listed(data.get("news_info"))],
            sub_buttons=[cls.from_wx_dict(sub) for sub in _listed(data.get("sub_button"))],
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MenuButton":
        """Build from a button in the format used to create menus."""
        return cls(
            name=data.get("name", "") or "",
            type=data.get("type", "") or "",
            key=data.get("key", "") or "",
            value=data.get("value", "") or "",
            url=data.get("url", "") or "",
            app_id=data.get("appid", "") or "",
            page_path=data.get("pagepath", "") or "",
            news_info=[_news_item(item) for item in _listed(data.get("news_info"))],
            sub_buttons=[cls.from_dict(sub) for sub in data.get("sub_button") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the button in the format used to create menus, without empty fields."""
        result: dict[str, Any] = {"name": self.name}
        for key, value in (
            ("type", self.type),
            ("key", self.key),
            ("url", self.url),
            ("appid", self.app_id),
            ("pagepath", self.page_path),
        ):
            if value:
                result[key] = value
        if self.sub_buttons:
            result["sub_button"] = [sub.to_dict() for sub in self.sub_buttons]
        return result


def make_key_generator(prefix: str, start: int, keys: MutableSet[str]) -> KeyGenerator:
    """Return a function producing ``prefix`` + number keys not yet in ``keys``.

    Every key handed out is added to ``keys``.
    """
    counter = itertools.count(start + 1)

    def generate() -> str:
        for number in counter:
            key = f"{prefix}{number}"
            if key not in keys:
                keys.add(key)
                return key
        raise RuntimeError("key counter exhausted")

    return generate


def collect_all_keys(keys: MutableSet[str], buttons: list[MenuButton]) -> None:
    """Add the keys of all buttons and their sub-buttons to ``keys``."""
    for button in buttons:
        if button.key:
            keys.add(button.key)
        if button.sub_buttons:
            collect_all_keys(keys, button.sub_buttons)


def menu_item_to_reply_data(item: MenuButton) -> Optional[AutoReplyData]:
    """Return the automatic reply a platform reply button stands for, or None."""
    msg = AutoReplyMessage()
    if item.type == "text":
        msg.msg_type = "text"
        msg.content = item.value
    elif item.type == "img":
        msg.msg_type = "image"
        msg.media_id = item.value
    elif item.type == "voice":
        msg.msg_type = "voice"
        msg.media_id = item.value
    elif item.type == "video":
        msg.msg_type = "video"
        msg.media_id = item.value
        msg.title = "视频标题"
        msg.description = "视频描述"
    elif item.type == "news":
        msg.msg_type = "news"
        msg.media_id = item.value
        msg.articles = [
            AutoReplyArticle(
                title=news.title,
                description=news.digest,
                pic_url=news.cover_url,
                url=news.content_url,
            )
            for news in item.news_info
        ]
    else:
        _log.debug("reply type not handled: %s", item.type)
        return None
    return AutoReplyData(reply_all=True, msg_list=[msg])


def _carry_reply(
    key: str,
    item: MenuButton,
    old_map: Mapping[str, AutoReplyData],
    new_map: MutableMapping[str, AutoReplyData],
) -> None:
    if key in old_map:
        new_map[key] = old_map[key]
        return
    reply = menu_item_to_reply_data(item)
    if reply is not None:
        new_map[key] = reply


def fix_menu_item(
    key_generator: KeyGenerator,
    keys: MutableSet[str],
    old_map: Mapping[str, AutoReplyData],
    new_map: MutableMapping[str, AutoReplyData],
    item: MenuButton,
) -> MenuButton:
    """Turn a platform button into one the create API accepts.

    Reply buttons become click buttons with a key; their reply is taken from
    ``old_map`` when the key is known there, else built from the button, and
    stored in ``new_map``.
    """
    fixed = MenuButton(type=item.type, name=item.name, sub_buttons=item.sub_buttons)
    if item.key:
        keys.add(item.key)

    if item.type == "view":
        fixed.url = item.url
    elif item.type in _REPLY_ITEM_TYPES or item.type == "click":
        fixed.type = "click"
        fixed.key = item.key
        if not fixed.key:
            fixed.key = key_generator()
            reply = menu_item_to_reply_data(item)
            if reply is not None:
                new_map[fixed.key] = reply
        else:
            _carry_reply(fixed.key, item, old_map, new_map)
    elif item.type == "miniprogram":
        fixed.key = item.key
        fixed.url = item.url
        fixed.app_id = item.app_id
        fixed.page_path = item.page_path
    else:
        fixed.key = item.key
        if fixed.key and fixed.key in old_map:
            new_map[fixed.key] = old_map[fixed.key]
    return fixed


def sync_menu(
    buttons: list[MenuButton], old_map: Mapping[str, AutoReplyData]
) -> tuple[list[MenuButton], dict[str, AutoReplyData]]:
    """Convert the platform's current menu; return (buttons, replies by key)."""
    keys: set[str] = set()
    key_generator = make_key_generator("key_", 0, keys)
    collect_all_keys(keys, buttons)

    new_map: dict[str, AutoReplyData] = {}
    fixed_buttons: list[MenuButton] = []
    for button in buttons:
        subs = [
            fix_menu_item(key_generator, keys, old_map, new_map, sub)
            for sub in button.sub_buttons
        ]
        parent = MenuButton(
            name=button.name,
            type=button.type,
            key=button.key,
            value=button.value,
            url=button.url,
            news_info=button.news_info,
            sub_buttons=subs,
        )
        fixed_buttons.append(fix_menu_item(key_generator, keys, old_map, new_map, parent))
    return fixed_buttons, new_map