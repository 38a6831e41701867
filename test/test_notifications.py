from datetime import datetime

import pytest

import notifications
from errors import NotFoundError, ValidationError


def _insert(store, owner, nid, ts, read=False):
    store.insert_notification({
        "id": nid, "ownerId": owner, "timestamp": ts,
        "message": f"msg {nid}", "read": read, "link": "#",
    })


def test_summary_for_unknown_user_is_empty(store):
    summary = notifications.get_summary(store, "ghost")
    assert summary == {"success": True, "unreadCount": 0, "latestNotifications": []}


def test_summary_newest_first_across_timestamp_shapes(store, make_asesor):
    make_asesor("a1")
    _insert(store, "a1", "n1", datetime(2024, 1, 1), read=True)
    _insert(store, "a1", "n3", "2024-03-01T00:00:00Z")
    _insert(store, "a1", "n2", {"_seconds": int(datetime(2024, 2, 1).timestamp()), "_nanoseconds": 0})

    summary = notifications.get_summary(store, "a1")

    assert summary["unreadCount"] == 2
    assert [n["id"] for n in summary["latestNotifications"]] == ["n3", "n2", "n1"]


def test_summary_is_capped(store, make_asesor):
    make_asesor("a1")
    for i in range(8):
        _insert(store, "a1", f"n{i}", datetime(2024, 1, i + 1))
    summary = notifications.get_summary(store, "a1")
    assert len(summary["latestNotifications"]) == 5
    assert summary["latestNotifications"][0]["id"] == "n7"
    assert summary["unreadCount"] == 8


def test_add_notification_appends_record(store, make_asesor):
    make_asesor("a1")
    record = notifications.add_notification(store, "a1", "Hola", "/perfilasesor")
    assert record["read"] is False
    stored = store.find_notifications("a1")
    assert len(stored) == 1
    assert stored[0]["link"] == "/perfilasesor"


def test_add_notification_failure_is_logged_not_raised(store, monkeypatch):
    def boom(doc):
        raise RuntimeError("db down")
    monkeypatch.setattr(store, "insert_notification", boom)
    assert notifications.add_notification(store, "a1", "Hola") is None


def test_mark_read_unknown_id_changes_nothing(store, make_asesor):
    make_asesor("a1")
    _insert(store, "a1", "n1", datetime(2024, 1, 1))

    with pytest.raises(NotFoundError):
        notifications.mark_read(store, "a1", "missing")

    assert store.find_notifications("a1")[0]["read"] is False


def test_mark_read_only_touches_owner_records(store, make_asesor):
    make_asesor("a1")
    make_asesor("a2")
    _insert(store, "a2", "n1", datetime(2024, 1, 1))

    with pytest.raises(NotFoundError):
        notifications.mark_read(store, "a1", "n1")

    result = notifications.mark_read(store, "a2", "n1")
    assert result["success"] is True
    assert notifications.unread_count(store, "a2") == 0


def test_mark_read_unknown_user(store):
    with pytest.raises(NotFoundError):
        notifications.mark_read(store, "ghost", "n1")


def test_mark_read_without_id_is_validation_error(store, make_asesor):
    make_asesor("a1")
    with pytest.raises(ValidationError):
        notifications.mark_read(store, "a1", None)
    with pytest.raises(ValidationError):
        notifications.mark_read(store, "a1", ["n1"])
