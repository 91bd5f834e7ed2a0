import json
from datetime import datetime, timedelta, timezone

import pytest

from woaa.logfmt import (
    Level,
    escape_message,
    escape_string,
    format_int,
    format_logfmt_uint64,
    format_time_term,
    format_value,
    level_aligned_string,
    level_string,
)


@pytest.mark.parametrize(
    "level, aligned, name",
    [
        (Level.TRACE, "TRACE", "trace"),
        (Level.DEBUG, "DEBUG", "debug"),
        (Level.INFO, "INFO ", "info"),
        (Level.WARN, "WARN ", "warn"),
        (Level.ERROR, "ERROR", "error"),
        (Level.CRIT, "CRIT ", "crit"),
    ],
)
def test_level_names(level, aligned, name):
    assert level_aligned_string(level) == aligned
    assert level_string(level) == name
    assert len(level_aligned_string(level)) == 5


def test_unknown_level_names():
    assert level_aligned_string(3) == "unknown level"
    assert level_string(3) == "unknown"


def test_escape_message_plain_unchanged():
    assert escape_message("hello world") == "hello world"


def test_escape_message_keeps_multiline():
    assert escape_message("line1\nline2\tend") == "line1\nline2\tend"


def test_escape_message_quotes_equals():
    result = escape_message("a=b\n")
    assert result.startswith('"') and result.endswith('"')
    assert json.loads(result) == "a=b\n"


def test_escape_message_quotes_non_ascii():
    result = escape_message("héllo")
    assert json.loads(result) == "héllo"


def test_escape_string_plain():
    assert escape_string("hello") == "hello"


def test_escape_string_space_is_wrapped():
    assert escape_string("hello world") == '"hello world"'


@pytest.mark.parametrize("text", ["tab\there", 'say "hi"', "back\\slash x", "ünï"])
def test_escape_string_round_trip(text):
    result = escape_string(text)
    assert result.startswith('"')
    assert json.loads(result) == text


def test_format_time_term():
    t = datetime(2024, 3, 5, 7, 8, 9, 123456)
    assert format_time_term(t) == "03-05|07:08:09.123"


def test_format_int_small_is_plain():
    assert format_int(99999) == "99999"
    assert format_int(-99999) == "-99999"


def test_format_int_pinned():
    assert format_int(1234567) == "1,234,567"


@pytest.mark.parametrize("n", [100000, -100000, 987654321, 10**30, -(10**25) - 7])
def test_format_int_groups(n):
    result = format_int(n)
    assert result.replace(",", "") == str(n)
    groups = result.lstrip("-").split(",")
    assert 1 <= len(groups[0]) <= 3
    assert all(len(g) == 3 for g in groups[1:])
    assert len(groups) > 1


def test_format_logfmt_uint64():
    result = format_logfmt_uint64(123456)
    assert result.replace(",", "") == "123456"
    assert "," in result


def test_format_logfmt_uint64_rejects_negative():
    with pytest.raises(ValueError):
        format_logfmt_uint64(-1)


def test_format_value_none():
    assert format_value(None) == "<nil>"


def test_format_value_string_uses_escaping():
    assert format_value("two words") == escape_string("two words")


def test_format_value_float_three_decimals():
    result = format_value(3.14159)
    assert len(result.split(".")[1]) == 3
    assert abs(float(result) - 3.14159) < 0.0005


def test_format_value_int_matches_format_int():
    assert format_value(7654321) == format_int(7654321)


def test_format_value_datetime_round_trip():
    t = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=8)))
    result = format_value(t)
    assert datetime.strptime(result, "%Y-%m-%dT%H:%M:%S%z") == t


def test_format_value_duration():
    assert format_value(timedelta(seconds=90)) == "1m30s"


def test_format_value_exception():
    assert format_value(ValueError("boom")) == "boom"


def test_format_value_terminal_string():
    class Thing:
        def terminal_string(self):
            return "term view"

        def __str__(self):
            return "other"

    assert format_value(Thing()) == '"term view"'


def test_format_value_generic_object():
    class Thing:
        def __str__(self):
            return "a=b"

    assert format_value(Thing()) == '"a=b"'