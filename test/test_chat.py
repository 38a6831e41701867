import pytest

import chat
from errors import ForbiddenError, ValidationError


def test_room_id_is_symmetric():
    assert chat.room_id("c1", "a1") == "chat_a1_c1"
    assert chat.room_id("a1", "c1") == "chat_a1_c1"


def test_send_message_bumps_recipient_counter_only(store):
    rid, sent = chat.send_message(store, "c1", "cliente", "a1", "  Hola  ", "2024-05-01T10:00:00Z")

    assert rid == "chat_a1_c1"
    assert sent["text"] == "Hola"
    assert sent["timestamp"] == "2024-05-01T10:00:00Z"

    room = store.find_chat(rid)
    assert room["clientId"] == "c1"
    assert room["asesorId"] == "a1"
    assert room["asesorUnreadCount"] == 1
    assert room["clientUnreadCount"] == 0
    assert room["lastMessageText"] == "Hola"

    chat.send_message(store, "a1", "asesor", "c1", "Buenas")
    room = store.find_chat(rid)
    assert len(room["messages"]) == 2
    assert room["asesorUnreadCount"] == 1
    assert room["clientUnreadCount"] == 1


def test_send_message_rejects_bad_input(store):
    with pytest.raises(ValidationError):
        chat.send_message(store, "c1", "cliente", "a1", "   ")
    with pytest.raises(ValidationError):
        chat.send_message(store, "c1", "cliente", "a1", "Hola", "not-a-time")
    with pytest.raises(ValidationError):
        chat.send_message(store, "c1", "admin", "a1", "Hola")
    assert store.find_chat("chat_a1_c1") is None


def test_get_messages_resets_reader_counter(store):
    chat.send_message(store, "c1", "cliente", "a1", "uno")
    chat.send_message(store, "c1", "cliente", "a1", "dos")

    messages = chat.get_messages(store, "chat_a1_c1", "asesor")

    assert [m["text"] for m in messages] == ["uno", "dos"]
    assert store.find_chat("chat_a1_c1")["asesorUnreadCount"] == 0


def test_get_messages_missing_room(store):
    assert chat.get_messages(store, "chat_x_y", "cliente") == []


def test_ensure_pair_requires_assignment(store, make_cliente, make_asesor):
    make_cliente("c1")
    make_asesor("a1", verified=True)
    with pytest.raises(ForbiddenError):
        chat.ensure_client_advisor_pair(store, "c1", "a1")

    store.assign_asesor("c1", "a1", None)
    assert chat.ensure_client_advisor_pair(store, "c1", "a1")["_id"] == "c1"


def test_sidebar_lists_assigned_clients(store, make_cliente, make_asesor):
    make_asesor("a1", verified=True)
    make_cliente("c1")
    store.assign_asesor("c1", "a1", None)
    chat.send_message(store, "c1", "cliente", "a1", "Necesito ayuda")

    items = chat.sidebar(store, "a1")

    assert len(items) == 1
    assert items[0]["id"] == "c1"
    assert items[0]["lastMessage"] == "Necesito ayuda"
    assert items[0]["unreadCount"] == 1
