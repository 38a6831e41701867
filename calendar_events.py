import logging
from datetime import datetime

from errors import NotFoundError, ValidationError
from fields import clean_text

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Evento no encontrado o no autorizado."


def _serialize(doc):
    return {
        "id": str(doc["_id"]),
        "title": doc.get("title", ""),
        "start": doc.get("start"),
        "end": doc.get("end") or doc.get("start"),
        "time": doc.get("time", ""),
        "description": doc.get("description", ""),
        "allDay": bool(doc.get("allDay", False)),
    }


def _event_fields(data):
    title = clean_text(data.get("title"), "title")
    date = clean_text(data.get("date") or data.get("start"), "date")
    if not title or not date:
        raise ValidationError("Título y fecha del evento son requeridos.")
    return {
        "title": title,
        "start": date,
        "end": clean_text(data.get("end"), "end") or None,
        "time": clean_text(data.get("time"), "time"),
        "description": clean_text(data.get("description"), "description"),
        "allDay": bool(data.get("allDay", False)),
    }


def _owned_event(store, owner_id, event_id):
    # non-owners get the same answer as a missing id
    event = store.find_event(event_id)
    if not event or event.get("ownerId") != owner_id:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return event


def list_events(store, owner_id):
    return [_serialize(e) for e in store.find_events(owner_id)]


def create_event(store, owner_id, owner_type, data):
    fields = _event_fields(data)
    now = datetime.utcnow()
    fields.update({
        "ownerId": owner_id,
        "ownerType": owner_type,
        "createdAt": now,
        "updatedAt": now,
    })
    event_id = store.insert_event(fields)
    logger.info("Event %s created for %s", event_id, owner_id)
    return event_id


def update_event(store, owner_id, event_id, data):
    _owned_event(store, owner_id, event_id)
    fields = _event_fields(data)
    fields["updatedAt"] = datetime.utcnow()
    store.update_event(event_id, fields)


def delete_event(store, owner_id, event_id):
    _owned_event(store, owner_id, event_id)
    store.delete_event(event_id)
    logger.info("Event %s deleted by %s", event_id, owner_id)
