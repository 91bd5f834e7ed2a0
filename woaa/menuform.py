"""Forms and stored documents for locally edited menus."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from woaa.access import ApiError
from woaa.menusync import MenuButton
from woaa.models import AutoReplyData

NORMAL_MENU = "normal"
MENU_CLICK_REPLY_TYPE = "menu_click"

_PARAM_ERROR = "param error"


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _copy_button(button: MenuButton, sub_buttons: list[MenuButton]) -> MenuButton:
    return MenuButton(
        name=button.name,
        type=button.type,
        key=button.key,
        url=button.url,
        app_id=button.app_id,
        page_path=button.page_path,
        sub_buttons=sub_buttons,
    )


def normalize_buttons(buttons: list[Optional[MenuButton]]) -> list[MenuButton]:
    """Return copies of submitted buttons holding only the fields the menu keeps.

    Sub-buttons keep no sub-buttons of their own. Raises ApiError on an empty entry.
    """
    result = []
    for button in buttons:
        if button is None:
            raise ApiError(1, _PARAM_ERROR)
        subs = [_copy_button(sub, []) for sub in button.sub_buttons if sub is not None]
        result.append(_copy_button(button, subs))
    return result


def rekey_conditional(
    buttons: list[Optional[MenuButton]],
    menu_id: str,
    auto_reply: Optional[Mapping[str, Optional[AutoReplyData]]],
) -> tuple[list[Optional[MenuButton]], dict[str, Optional[AutoReplyData]]]:
    """Replace the '_new_' marker in button keys with the saved menu's id.

    Returns (buttons, replies keyed by the new keys). Raises ApiError when a
    reply's key belongs to no button.
    """
    marker = f"_{menu_id}_"
    key_map: dict[str, str] = {}

    def rekey(button: MenuButton, subs: list[MenuButton]) -> MenuButton:
        new_key = button.key.replace("_new_", marker, 1)
        key_map[button.key] = new_key
        copy = _copy_button(button, subs)
        copy.key = new_key
        copy.value = button.value
        copy.news_info = button.news_info
        return copy

    new_buttons: list[Optional[MenuButton]] = []
    for button in buttons:
        if button is None:
            new_buttons.append(None)
            continue
        parent = rekey(button, [])
        parent.sub_buttons = [rekey(sub, sub.sub_buttons) for sub in button.sub_buttons]
        new_buttons.append(parent)

    new_reply: dict[str, Optional[AutoReplyData]] = {}
    for key, data in (auto_reply or {}).items():
        if key not in key_map:
            raise ApiError(1, "key not found:" + key)
        new_reply[key_map[key]] = data
    return new_buttons, new_reply


def normal_menu_filter(appid: str) -> dict[str, Any]:
    """Return the query for the normal menu of an account."""
    return {"appid": appid, "menu_type": NORMAL_MENU, "menu_id": NORMAL_MENU}


def menu_data_update(buttons: list[MenuButton]) -> dict[str, Any]:
    """Return the update storing the buttons as the menu's JSON data."""
    data = {"button": [button.to_dict() for button in buttons]}
    return {"$set": {"menu_data": _dumps(data)}}


def menu_click_reply_update(
    appid: str, reply_map: Mapping[str, Optional[AutoReplyData]]
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Return (query, update) storing click replies as both published and draft data."""
    text = _dumps({key: None if data is None else data.to_dict() for key, data in reply_map.items()})
    return (
        {"appid": appid, "reply_type": MENU_CLICK_REPLY_TYPE},
        {"$set": {"reply_data": text, "draft_data": text}},
    )


def _parse_buttons(raw: Any) -> list[Optional[MenuButton]]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError("button must be a list")
    buttons: list[Optional[MenuButton]] = []
    for item in raw:
        if item is None:
            buttons.append(None)
        elif isinstance(item, Mapping):
            buttons.append(MenuButton.from_dict(item))
        else:
            raise ValueError("button entries must be objects")
    return buttons


def _parse_auto_reply(raw: Any) -> dict[str, Optional[AutoReplyData]]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError("autoreply must be an object")
    result: dict[str, Optional[AutoReplyData]] = {}
    for key, value in raw.items():
        if value is None:
            result[key] = None
        elif isinstance(value, Mapping):
            result[key] = AutoReplyData.from_dict(dict(value))
        else:
            raise ValueError("autoreply entries must be objects")
    return result


def parse_save_form(data: Any) -> tuple[list[Optional[MenuButton]], dict[str, Optional[AutoReplyData]]]:
    """Return (buttons, replies by key) from a submitted normal menu."""
    if not isinstance(data, Mapping):
        raise ApiError(1, _PARAM_ERROR)
    try:
        return _parse_buttons(data.get("button")), _parse_auto_reply(data.get("autoreply"))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ApiError(1, _PARAM_ERROR) from exc


def parse_conditional_form(
    data: Any,
) -> tuple[str, Optional[dict[str, Any]], list[Optional[MenuButton]], dict[str, Optional[AutoReplyData]]]:
    """Return (id, match rule, buttons, replies by key) from a submitted conditional menu."""
    if not isinstance(data, Mapping):
        raise ApiError(1, _PARAM_ERROR + "invalid form")
    try:
        menu_id = data.get("id") or ""
        if not isinstance(menu_id, str):
            raise ValueError("id must be a string")
        rule = data.get("matchrule")
        if rule is not None and not isinstance(rule, Mapping):
            raise ValueError("matchrule must be an object")
        buttons = _parse_buttons(data.get("button"))
        replies = _parse_auto_reply(data.get("autoreply"))
    except (AttributeError, TypeError, ValueError) as exc:
        raise ApiError(1, _PARAM_ERROR + str(exc)) from exc
    return menu_id, None if rule is None else dict(rule), buttons, replies