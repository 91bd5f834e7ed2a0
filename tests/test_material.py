from datetime import datetime, timedelta, timezone

import pytest

from woaa.access import ApiError
from woaa.material import (
    MaterialUploadForm,
    delete_filter,
    local_list_item,
    material_filter,
    material_update,
    parse_delete_form,
    parse_list_form,
    parse_source_form,
    remote_list_item,
    temp_expires_at,
    uses_local_list,
)


def test_upload_form_defaults_to_perm():
    form = MaterialUploadForm.from_dict({"media_type": "image", "file": object()})
    assert form.media_cat == "perm"
    assert form.title == ""


def test_upload_form_requires_file():
    with pytest.raises(ApiError) as info:
        MaterialUploadForm.from_dict({"media_type": "image"})
    assert info.value.code == 400
    assert info.value.message == "参数错误"


def test_upload_form_requires_media_type():
    with pytest.raises(ApiError):
        MaterialUploadForm.from_dict({"file": object()})


def test_parse_source_form():
    params = {"media_cat": "temp", "media_type": "voice", "media_id": "m1"}
    assert parse_source_form(params) == ("temp", "voice", "m1")


def test_parse_source_form_missing_id():
    with pytest.raises(ApiError):
        parse_source_form({"media_cat": "temp", "media_type": "voice"})


def test_parse_list_form_parses_numbers():
    params = {"media_cat": "perm", "media_type": "news", "offset": "10", "count": "20"}
    assert parse_list_form(params) == ("perm", "news", 10, 20)


def test_parse_list_form_defaults_numbers():
    assert parse_list_form({"media_cat": "perm", "media_type": "image"})[2:] == (0, 0)


def test_parse_list_form_bad_number():
    with pytest.raises(ApiError):
        parse_list_form({"media_cat": "perm", "media_type": "image", "offset": "x"})


def test_parse_delete_form_default_cat():
    assert parse_delete_form({"media_id": "m1"}) == ("perm", "m1")
    assert parse_delete_form({"media_id": "m1", "media_cat": "temp"}) == ("temp", "m1")


def test_parse_delete_form_requires_id():
    with pytest.raises(ApiError):
        parse_delete_form({"media_cat": "temp"})


@pytest.mark.parametrize(
    "media_cat, media_type, expected",
    [
        ("temp", "image", True),
        ("perm", "thumb", True),
        ("perm", "image", False),
        ("perm", "news", False),
    ],
)
def test_uses_local_list(media_cat, media_type, expected):
    assert uses_local_list(media_cat, media_type) is expected


def test_temp_expires_at_is_72_hours_later():
    created = 1_700_000_000
    expires = temp_expires_at(created)
    assert expires - datetime.fromtimestamp(created, tz=timezone.utc) == timedelta(hours=72)


def test_material_filter():
    assert material_filter("wx-app", "image", "m1") == {
        "appid": "wx-app",
        "media_type": "image",
        "media_id": "m1",
    }


def test_material_update_perm_image():
    update = material_update("perm", "image", "/f/a.jpg", "/f/a.jpg", "u", "t", "d", None)
    assert set(update["$set"]) == {"media_cat", "file_path", "file_url_path", "wx_url"}


def test_material_update_temp_video():
    expires = temp_expires_at(0)
    fields = material_update("temp", "video", "/f/v.mp4", "/f/v.mp4", "u", "t", "d", expires)["$set"]
    assert fields["title"] == "t"
    assert fields["description"] == "d"
    assert fields["expires_at"] == expires


def test_delete_filter():
    assert delete_filter("wx-app", "temp", "m1") == {
        "appid": "wx-app",
        "media_cat": "temp",
        "media_id": "m1",
    }


def test_local_list_item():
    doc = {"_id": "abc", "media_cat": "temp", "media_type": "image", "media_id": "m1", "wx_url": "u"}
    item = local_list_item(doc)
    assert item["id"] == "abc"
    assert item["media_id"] == "m1"
    assert item["name"] == ""
    assert item["content"] == {"news_item": None}


def test_remote_list_item():
    news = [{"title": "t"}]
    item = remote_list_item(
        {"media_id": "m1", "name": "n", "url": "u", "content": {"news_item": news}}, "perm", "news"
    )
    assert item["id"] == ""
    assert item["media_cat"] == "perm"
    assert item["media_type"] == "news"
    assert item["wx_url"] == "u"
    assert item["expires_at"] is None
    assert item["content"]["news_item"] == news