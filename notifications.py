import logging
import uuid
from datetime import datetime

from errors import NotFoundError, ValidationError
from timestamps import isoformat, to_millis

logger = logging.getLogger(__name__)

SUMMARY_SIZE = 5


def add_notification(store, user_id, message, link="#"):
    """
    Append a notification for user_id.

    Never raises: a failed append is logged and None is returned, callers
    do not depend on the notification being stored.
    """
    record = {
        "id": str(uuid.uuid4()),
        "ownerId": user_id,
        "timestamp": datetime.utcnow(),
        "message": message,
        "read": False,
        "link": link or "#",
    }
    try:
        store.insert_notification(record)
    except Exception:
        logger.exception("Could not append notification for %s", user_id)
        return None
    logger.info("Notification added to %s: %s", user_id, message)
    return record


def _owner_exists(store, user_id):
    return bool(store.find_asesor(user_id) or store.find_cliente(user_id) or store.find_user(user_id))


def _serialize(record):
    return {
        "id": record.get("id"),
        "timestamp": isoformat(record.get("timestamp")),
        "message": record.get("message", ""),
        "read": bool(record.get("read", False)),
        "link": record.get("link") or "#",
    }


def sorted_notifications(records):
    return sorted(records, key=lambda n: to_millis(n.get("timestamp")), reverse=True)


def get_summary(store, user_id, limit=SUMMARY_SIZE):
    """Unread count plus the `limit` newest notifications; unknown users get an empty summary."""
    if not _owner_exists(store, user_id):
        return {"success": True, "unreadCount": 0, "latestNotifications": []}

    records = store.find_notifications(user_id)
    unread = sum(1 for n in records if not n.get("read", False))
    latest = sorted_notifications(records)[:limit]
    return {
        "success": True,
        "unreadCount": unread,
        "latestNotifications": [_serialize(n) for n in latest],
    }


def list_notifications(store, user_id):
    return [_serialize(n) for n in sorted_notifications(store.find_notifications(user_id))]


def unread_count(store, user_id):
    return sum(1 for n in store.find_notifications(user_id) if not n.get("read", False))


def mark_read(store, user_id, notification_id):
    if not notification_id or not isinstance(notification_id, str):
        raise ValidationError("ID de notificación no proporcionado.")
    if not _owner_exists(store, user_id):
        raise NotFoundError("Usuario no encontrado.")
    if not store.mark_notification_read(user_id, notification_id):
        raise NotFoundError("Notificación no encontrada.")
    return {"success": True, "message": "Notificación marcada como leída."}
