import pytest

import calendar_events
import goals
from errors import NotFoundError, ValidationError


def test_event_lifecycle(store):
    event_id = calendar_events.create_event(store, "a1", "asesor", {
        "title": "Reunión", "date": "2024-06-01", "time": "10:00",
    })
    events = calendar_events.list_events(store, "a1")
    assert events[0]["id"] == event_id
    assert events[0]["end"] == "2024-06-01"

    calendar_events.update_event(store, "a1", event_id, {"title": "Reunión movida", "date": "2024-06-02"})
    assert calendar_events.list_events(store, "a1")[0]["title"] == "Reunión movida"

    calendar_events.delete_event(store, "a1", event_id)
    assert calendar_events.list_events(store, "a1") == []


def test_event_requires_title_and_date(store):
    with pytest.raises(ValidationError):
        calendar_events.create_event(store, "a1", "asesor", {"title": "Sin fecha"})


def test_other_owner_sees_not_found(store):
    event_id = calendar_events.create_event(store, "a1", "asesor", {"title": "Privado", "date": "2024-06-01"})

    with pytest.raises(NotFoundError):
        calendar_events.update_event(store, "c1", event_id, {"title": "Hack", "date": "2024-06-01"})
    with pytest.raises(NotFoundError):
        calendar_events.delete_event(store, "c1", event_id)
    with pytest.raises(NotFoundError):
        calendar_events.delete_event(store, "a1", "not-an-id")

    assert calendar_events.list_events(store, "a1")[0]["title"] == "Privado"


def test_goal_lifecycle(store):
    goal_id = goals.create_goal(store, "c1", {"nombre": "Casa", "montoObjetivo": "50000"})
    goal = goals.get_goal(store, "c1", goal_id)
    assert goal["montoObjetivo"] == 50000.0
    assert goal["montoActual"] == 0.0

    goals.update_goal(store, "c1", goal_id, {"nombre": "Casa", "montoObjetivo": 50000, "montoActual": "1200"})
    assert goals.list_goals(store, "c1")[0]["montoActual"] == 1200.0

    with pytest.raises(NotFoundError):
        goals.get_goal(store, "c2", goal_id)

    goals.delete_goal(store, "c1", goal_id)
    assert goals.list_goals(store, "c1") == []


def test_goal_amounts_must_be_numbers(store):
    with pytest.raises(ValidationError):
        goals.create_goal(store, "c1", {"nombre": "Auto", "montoObjetivo": "mucho"})
    with pytest.raises(ValidationError):
        goals.create_goal(store, "c1", {"nombre": "", "montoObjetivo": "10"})
