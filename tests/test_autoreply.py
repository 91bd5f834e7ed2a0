import json

import pytest

from woaa.access import ApiError
from woaa.autoreply import (
    AutoReplySaveForm,
    KeywordDef,
    check_reply_type,
    enabled_update,
    list_item,
    search_filter,
    single_reply_filter,
)
from woaa.models import AutoReplyData, AutoReplyMessage


def _reply_dict():
    return AutoReplyData(
        reply_all=True,
        msg_list=[AutoReplyMessage(msg_type="text", content="hello")],
    ).to_dict()


@pytest.mark.parametrize("reply_type", ["subscribe", "keyword", "message"])
def test_check_reply_type_accepts_known(reply_type):
    assert check_reply_type(reply_type) == reply_type


@pytest.mark.parametrize("reply_type", ["", "menu_click", None, 3])
def test_check_reply_type_rejects_others(reply_type):
    with pytest.raises(ApiError) as info:
        check_reply_type(reply_type)
    assert info.value.code == 400
    assert info.value.message == "参数错误"


def test_form_requires_reply_data():
    with pytest.raises(ApiError) as info:
        AutoReplySaveForm.from_dict({"reply_type": "message"})
    assert info.value.code == 400


def test_form_rejects_bad_reply_type():
    with pytest.raises(ApiError):
        AutoReplySaveForm.from_dict({"reply_type": "other", "reply_data": _reply_dict()})


def test_form_rejects_non_list_keywords():
    with pytest.raises(ApiError):
        AutoReplySaveForm.from_dict(
            {"reply_type": "keyword", "reply_data": _reply_dict(), "keywords": "hi"}
        )


def test_update_document_message_sets_only_reply_data():
    form = AutoReplySaveForm.from_dict({"reply_type": "message", "reply_data": _reply_dict()})
    update = form.update_document()
    assert list(update["$set"]) == ["reply_data"]
    restored = AutoReplyData.from_dict(json.loads(update["$set"]["reply_data"]))
    assert restored == form.reply_data


def test_update_document_keyword_sets_rule_fields():
    form = AutoReplySaveForm.from_dict(
        {
            "reply_type": "keyword",
            "reply_data": _reply_dict(),
            "rule_title": "greeting",
            "keywords": ["hi", "hello"],
            "keywords_def": [{"keyword": "hi", "exact": True}],
        }
    )
    fields = form.update_document()["$set"]
    assert fields["rule_title"] == "greeting"
    assert fields["keywords"] == ["hi", "hello"]
    assert json.loads(fields["keywords_def"]) == [{"keyword": "hi", "exact": True}]
    assert form.keywords_def == [KeywordDef(keyword="hi", exact=True)]


def test_insert_document_without_keyword_defs_stores_null():
    form = AutoReplySaveForm.from_dict({"reply_type": "keyword", "reply_data": _reply_dict()})
    doc = form.insert_document("wx-app")
    assert doc["appid"] == "wx-app"
    assert doc["reply_type"] == "keyword"
    assert doc["keywords_def"] == "null"
    assert json.loads(doc["reply_data"]) == _reply_dict()


def test_search_filter_without_search():
    assert search_filter("wx-app", "keyword", "") == {"appid": "wx-app", "reply_type": "keyword"}


def test_search_filter_with_search_matches_title_and_keywords():
    query = search_filter("wx-app", "keyword", "hi")
    assert query["$or"] == [
        {"rule_title": {"$regex": "hi"}},
        {"keywords": {"$regex": "hi"}},
    ]


def test_search_filter_rejects_bad_type():
    with pytest.raises(ApiError):
        search_filter("wx-app", "bogus", "")


def test_single_reply_filter():
    assert single_reply_filter("wx-app", "subscribe") == {
        "appid": "wx-app",
        "reply_type": "subscribe",
    }


def test_list_item_round_trip():
    form = AutoReplySaveForm.from_dict(
        {
            "reply_type": "keyword",
            "reply_data": _reply_dict(),
            "rule_title": "greeting",
            "keywords": ["hi"],
            "keywords_def": [{"keyword": "hi", "exact": False}],
        }
    )
    doc = form.insert_document("wx-app")
    doc["_id"] = "abc"
    item = list_item(doc)
    assert item["id"] == "abc"
    assert item["reply_data"] == _reply_dict()
    assert item["keywords_def"] == [{"keyword": "hi", "exact": False}]
    assert item["keywords"] == ["hi"]


def test_list_item_empty_keyword_defs_is_none():
    item = list_item({"_id": "abc", "reply_type": "message", "reply_data": json.dumps(_reply_dict())})
    assert item["keywords_def"] is None


def test_list_item_bad_reply_data():
    with pytest.raises(ApiError) as info:
        list_item({"_id": "abc", "reply_data": "not json"})
    assert info.value.code == 500
    assert info.value.message == "解析replydata失败:abc"


def test_list_item_bad_keyword_defs():
    with pytest.raises(ApiError) as info:
        list_item({"_id": "abc", "reply_data": json.dumps(_reply_dict()), "keywords_def": "{"})
    assert info.value.message == "转换keywordsdef失败"


def test_enabled_update():
    query, update = enabled_update("wx-app", "message", True)
    assert query == {"appid": "wx-app", "reply_type": "message"}
    assert update == {"$set": {"enabled": True}}


def test_enabled_update_rejects_bad_type():
    with pytest.raises(ApiError):
        enabled_update("wx-app", "x", False)