import json
import time

import pytest

from woaa.models import RequestLogInfo
from woaa.mongolog import MongoLogSink


class FakeCollection:
    def __init__(self):
        self.batches = []

    def insert_many(self, docs):
        self.batches.append(list(docs))


def _line(**fields):
    return json.dumps(fields).encode("utf-8")


def _wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def test_write_returns_length_and_buffers_until_flush():
    coll = FakeCollection()
    sink = MongoLogSink(lambda: coll, None, 5, 60.0)
    data = _line(path="/api/a")
    assert sink.write(data) == len(data)
    assert coll.batches == []
    assert sink.flush() == 1
    assert coll.batches == [[{"path": "/api/a"}]]


def test_flush_clears_buffer():
    coll = FakeCollection()
    sink = MongoLogSink(lambda: coll, None, 5, 60.0)
    sink.write(_line(n=1))
    sink.write(_line(n=2))
    assert sink.flush() == 2
    assert sink.flush() == 0
    assert len(coll.batches) == 1


def test_invalid_json_raises():
    sink = MongoLogSink(lambda: FakeCollection(), None, 5, 60.0)
    with pytest.raises(ValueError):
        sink.write(b"not json")


def test_missing_collection_getter_raises():
    sink = MongoLogSink(None, None, 5, 60.0)
    assert sink.flush() == 0
    sink.write(_line(n=1))
    with pytest.raises(RuntimeError):
        sink.flush()


def test_failed_collection_keeps_buffer():
    coll = FakeCollection()
    calls = {"fail": True}

    def getter():
        if calls["fail"]:
            raise ConnectionError("down")
        return coll

    sink = MongoLogSink(getter, None, 5, 60.0)
    sink.write(_line(n=1))
    with pytest.raises(ConnectionError):
        sink.flush()
    calls["fail"] = False
    assert sink.sync() == 1
    assert coll.batches == [[{"n": 1}]]


def test_full_batch_triggers_background_flush():
    coll = FakeCollection()
    with MongoLogSink(lambda: coll, None, 2, 60.0) as sink:
        sink.write(_line(n=1))
        sink.write(_line(n=2))
        assert _wait_for(lambda: coll.batches)
    assert coll.batches == [[{"n": 1}, {"n": 2}]]


def test_interval_flush():
    coll = FakeCollection()
    with MongoLogSink(lambda: coll, None, 100, 0.05) as sink:
        sink.write(_line(n=1))
        assert _wait_for(lambda: coll.batches)
    assert coll.batches[0] == [{"n": 1}]


def test_close_flushes_remaining():
    coll = FakeCollection()
    sink = MongoLogSink(lambda: coll, None, 100, 60.0).start()
    sink.write(_line(n=1))
    sink.close()
    assert coll.batches == [[{"n": 1}]]


def test_parse_result_is_stored_as_document():
    coll = FakeCollection()
    sink = MongoLogSink(lambda: coll, RequestLogInfo.from_dict, 5, 60.0)
    sink.write(_line(path="/api/x", status=200, **{"user-agent": "curl"}))
    sink.flush()
    (doc,) = coll.batches[0]
    assert doc["path"] == "/api/x"
    assert doc["status"] == 200
    assert doc["user-agent"] == "curl"