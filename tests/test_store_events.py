"""
Tests for the document store and the change channel
"""
import asyncio
import threading

import pytest

from codequiz.core.errors import ConflictError, NotFoundError
from codequiz.core.events import ADDED, MODIFIED, REMOVED, EventBus


def test_add_get_versions(store):
    doc = store.add("things", {"name": "a"})
    assert doc["version"] == 1
    updated = store.update("things", doc["id"], {"name": "b"})
    assert updated["version"] == 2
    assert store.get("things", doc["id"])["name"] == "b"


def test_returned_documents_are_copies(store):
    doc = store.add("things", {"tags": ["x"]})
    doc["tags"].append("y")
    assert store.get("things", doc["id"])["tags"] == ["x"]


def test_compare_and_swap(store):
    doc = store.add("things", {"n": 1})
    store.update("things", doc["id"], {"n": 2}, expected_version=1)
    with pytest.raises(ConflictError):
        store.update("things", doc["id"], {"n": 3}, expected_version=1)
    assert store.get("things", doc["id"])["n"] == 2


def test_update_missing_document(store):
    with pytest.raises(NotFoundError):
        store.update("things", "nope", {"n": 1})


def test_batch_all_or_nothing(store):
    """A failing precondition leaves every document untouched"""
    a = store.add("things", {"n": 1})
    b = store.add("things", {"n": 1})

    batch = store.batch()
    batch.update("things", a["id"], {"n": 2})
    batch.update("things", b["id"], {"n": 2}, expected_version=99)
    with pytest.raises(ConflictError):
        batch.commit()

    assert store.get("things", a["id"])["n"] == 1
    assert store.get("things", b["id"])["n"] == 1


def test_list_filter_and_order(store):
    for n in (3, 1, 2):
        store.add("things", {"n": n})
    docs = store.list("things", where=lambda d: d["n"] > 1, order_by="n", descending=True)
    assert [d["n"] for d in docs] == [3, 2]


def test_watch_delivers_snapshot_then_changes(store):
    doc = store.add("things", {"n": 1})
    sub = store.watch("things")

    snapshot = sub.drain()
    assert [(e.doc_id, e.kind) for e in snapshot] == [(doc["id"], ADDED)]

    store.update("things", doc["id"], {"n": 2})
    store.delete("things", doc["id"])
    events = sub.drain()
    assert [(e.doc_id, e.kind) for e in events] == [(doc["id"], REMOVED)]


def test_latest_value_per_document(store):
    """Several changes before a drain collapse into the latest one per document"""
    a = store.add("things", {"n": 0})
    b = store.add("things", {"n": 0})
    sub = store.watch("things")
    sub.drain()

    store.update("things", a["id"], {"n": 1})
    store.update("things", b["id"], {"n": 1})
    store.update("things", a["id"], {"n": 2})

    events = sub.drain()
    assert [(e.doc_id, e.data["n"]) for e in events] == [(b["id"], 1), (a["id"], 2)]
    assert all(e.kind == MODIFIED for e in events)
    assert events[0].seq < events[1].seq


def test_closed_subscription_receives_nothing(store):
    sub = store.watch("things")
    sub.close()
    store.add("things", {"n": 1})
    assert sub.drain() == []
    assert store.bus.subscriber_count("things") == 0


def test_topics_are_isolated():
    bus = EventBus()
    sub = bus.subscribe("a")
    bus.publish("b", "x", ADDED, {"id": "x"})
    assert sub.pending() == 0


def test_async_get_wakes_on_publish_from_thread():
    """Publishing from another thread wakes a waiting coroutine"""
    bus = EventBus()
    sub = bus.subscribe("things")

    async def wait_for_event():
        loop = asyncio.get_running_loop()
        loop.call_later(0.05, lambda: threading.Thread(
            target=bus.publish, args=("things", "d1", ADDED, {"id": "d1"})
        ).start())
        return await sub.get(timeout=5)

    events = asyncio.run(wait_for_event())
    assert [e.doc_id for e in events] == ["d1"]


def test_async_get_timeout():
    bus = EventBus()
    sub = bus.subscribe("things")
    assert asyncio.run(sub.get(timeout=0.01)) == []
