import logging
from datetime import datetime

from errors import ForbiddenError, ValidationError
from fields import clean_text
from store import USER_TYPE_ASESOR, USER_TYPE_CLIENTE
from timestamps import isoformat, parse_timestamp

logger = logging.getLogger(__name__)

UNREAD_FIELDS = {
    USER_TYPE_CLIENTE: "clientUnreadCount",
    USER_TYPE_ASESOR: "asesorUnreadCount",
}


def room_id(uid1, uid2):
    """Same room for both participants whichever side asks."""
    first, second = sorted([str(uid1), str(uid2)])
    return f"chat_{first}_{second}"


def _serialize_message(msg):
    return {
        "senderId": msg.get("senderId"),
        "senderType": msg.get("senderType"),
        "text": msg.get("text", ""),
        "timestamp": isoformat(msg.get("timestamp")),
    }


def send_message(store, sender_id, sender_type, recipient_id, text, timestamp=None):
    """
    Append a message from sender to the shared room and bump the
    recipient's unread counter. The message time is the caller's
    timestamp; server time is only used when none was sent.
    """
    if sender_type not in UNREAD_FIELDS:
        raise ValidationError("Tipo de remitente no válido.")
    text = clean_text(text, "messageText")
    if not sender_id or not recipient_id or not text:
        raise ValidationError("Datos incompletos para enviar mensaje.")

    if timestamp in (None, ""):
        sent_at = datetime.utcnow()
    else:
        sent_at = parse_timestamp(timestamp)
        if sent_at is None:
            raise ValidationError("La marca de tiempo del mensaje no es válida.")

    if sender_type == USER_TYPE_CLIENTE:
        client_id, asesor_id = sender_id, recipient_id
        recipient_field = UNREAD_FIELDS[USER_TYPE_ASESOR]
    else:
        client_id, asesor_id = recipient_id, sender_id
        recipient_field = UNREAD_FIELDS[USER_TYPE_CLIENTE]

    rid = room_id(client_id, asesor_id)
    message = {
        "senderId": sender_id,
        "senderType": sender_type,
        "text": text,
        "timestamp": sent_at,
    }
    store.append_chat_message(rid, client_id, asesor_id, message, recipient_field)
    logger.info("Message from %s %s stored in %s", sender_type, sender_id, rid)
    return rid, _serialize_message(message)


def get_messages(store, rid, reader_type):
    """Return the room's messages; reading resets the reader's unread counter."""
    if reader_type not in UNREAD_FIELDS:
        raise ValidationError("Tipo de lector no válido.")
    chat = store.find_chat(rid)
    if not chat:
        return []
    messages = [_serialize_message(m) for m in chat.get("messages", [])]
    store.reset_unread(rid, UNREAD_FIELDS[reader_type])
    return messages


def ensure_client_advisor_pair(store, cliente_id, asesor_id):
    """Chat is only open between a client and the advisor assigned to it."""
    cliente = store.find_cliente(cliente_id)
    if not cliente or not asesor_id or cliente.get("asesorAsignado") != asesor_id:
        raise ForbiddenError("Acceso denegado o asesor no asignado.")
    return cliente


def sidebar(store, asesor_id):
    """Assigned clients with last message and the advisor's unread count."""
    asesor = store.get_asesor(asesor_id)
    items = []
    for cliente in store.find_clientes(asesor.get("clientesAsignados", [])):
        chat = store.find_chat(room_id(asesor_id, cliente["_id"])) or {}
        items.append({
            "id": cliente["_id"],
            "nombre": cliente.get("nombre", ""),
            "apellido": cliente.get("apellido", ""),
            "fotoPerfilUrl": cliente.get("fotoPerfilUrl") or "/static/images/default-profile.png",
            "lastMessage": chat.get("lastMessageText", ""),
            "unreadCount": chat.get("asesorUnreadCount", 0),
        })
    return items
