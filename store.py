"""
store.py

Data-access object for the advisory platform's document database.

One AdvisoryStore wraps one pymongo Database and is handed to every
service function; nothing in the project keeps a module-level handle.
Lookups either return a document or raise NotFoundError. Array-valued
fields are only ever changed with atomic operators ($push, $addToSet,
$pull, $inc) so concurrent writers never overwrite each other's copy.
"""

import logging
from datetime import datetime

from bson.errors import InvalidId
from bson.objectid import ObjectId
from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument

from errors import NotFoundError
from timestamps import isoformat

logger = logging.getLogger(__name__)

USER_TYPE_CLIENTE = "cliente"
USER_TYPE_ASESOR = "asesor"
USER_TYPE_UNREGISTERED = "unregistered"

STATUS_NO_ENVIADO = "no-enviado"
STATUS_PENDIENTE = "pendiente"
STATUS_VERIFICADO = "verificado"
STATUS_RECHAZADO = "rechazado"


def object_id(value):
    """Return an ObjectId for value, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        return None


def public_doc(doc, drop=("passwordHash",)):
    """Copy a stored document into a JSON/template friendly dict."""
    if doc is None:
        return None
    out = {}
    for key, value in doc.items():
        if key in drop:
            continue
        if key == "_id":
            out["id"] = str(value)
            continue
        if isinstance(value, ObjectId):
            value = str(value)
        elif isinstance(value, datetime):
            value = isoformat(value)
        elif isinstance(value, dict):
            value = public_doc(value, drop=())
        out[key] = value
    return out


def default_verification_records():
    """Verification sub-records every new advisor starts with."""
    return {
        "verification": {
            "status": STATUS_NO_ENVIADO,
            "documentType": None,
            "documentNumber": None,
            "frontUrl": None,
            "backUrl": None,
            "selfieUrl": None,
            "notes": None,
            "submittedAt": None,
        },
        "verificacion": {
            "titulo": {
                "estado": STATUS_NO_ENVIADO,
                "url": None,
                "institucion": None,
                "observaciones": None,
                "submittedAt": None,
            },
            "certificacion": {
                "estado": STATUS_NO_ENVIADO,
                "url": None,
                "entidad": None,
                "observaciones": None,
                "submittedAt": None,
            },
        },
    }


class AdvisoryStore:

    def __init__(self, db):
        self.db = db
        self.users = db.get_collection("users")
        self.clientes = db.get_collection("clientes")
        self.asesores = db.get_collection("asesores")
        self.chats = db.get_collection("chats")
        self.notifications = db.get_collection("notifications")
        self.eventos = db.get_collection("eventosCalendario")
        self.objetivos = db.get_collection("objetivosCliente")

    @classmethod
    def from_uri(cls, uri, db_name):
        client = MongoClient(uri)
        return cls(client.get_database(db_name))

    def ensure_indexes(self):
        """Idempotent startup bootstrap; safe to call on every boot."""
        self.users.create_index([("email", ASCENDING)], unique=True)
        self.notifications.create_index([("ownerId", ASCENDING), ("timestamp", DESCENDING)])
        self.notifications.create_index([("id", ASCENDING)], unique=True)
        self.eventos.create_index([("ownerId", ASCENDING)])
        self.objetivos.create_index([("clienteId", ASCENDING)])
        self.chats.create_index([("asesorId", ASCENDING)])
        logger.info("Document store indexes ensured")

    # ---------------------------
    # USERS
    # ---------------------------

    def create_user(self, uid, email, user_type=USER_TYPE_UNREGISTERED,
                    password_hash=None, display_name=None):
        now = datetime.utcnow()
        doc = {
            "_id": uid,
            "email": (email or "").strip().lower(),
            "passwordHash": password_hash,
            "userType": user_type,
            "displayName": display_name,
            "createdAt": now,
            "updatedAt": now,
        }
        self.users.insert_one(doc)
        return doc

    def find_user(self, uid):
        if not uid:
            return None
        return self.users.find_one({"_id": uid})

    def get_user(self, uid):
        user = self.find_user(uid)
        if not user:
            raise NotFoundError("Usuario no encontrado.")
        return user

    def find_user_by_email(self, email):
        email = (email or "").strip().lower()
        if not email:
            return None
        return self.users.find_one({"email": email})

    def set_user_type(self, uid, user_type):
        self._update_one(self.users, uid, {"userType": user_type}, "Usuario no encontrado.")

    def set_password_hash(self, uid, password_hash):
        self._update_one(self.users, uid, {"passwordHash": password_hash}, "Usuario no encontrado.")

    def set_user_email(self, uid, email):
        self._update_one(self.users, uid, {"email": email.strip().lower()}, "Usuario no encontrado.")

    def delete_user(self, uid):
        """Delete a user and everything hanging off its id."""
        result = self.users.delete_one({"_id": uid})
        if result.deleted_count == 0:
            raise NotFoundError("Usuario no encontrado.")
        self.clientes.delete_one({"_id": uid})
        self.asesores.delete_one({"_id": uid})
        self.asesores.update_many({"clientesAsignados": uid}, {"$pull": {"clientesAsignados": uid}})
        self.clientes.update_many({"asesorAsignado": uid}, {"$set": {"asesorAsignado": None}})
        self.eventos.delete_many({"ownerId": uid})
        self.objetivos.delete_many({"clienteId": uid})
        self.notifications.delete_many({"ownerId": uid})
        self.chats.delete_many({"$or": [{"clientId": uid}, {"asesorId": uid}]})
        logger.info("Deleted user %s and dependent records", uid)

    # ---------------------------
    # CLIENTES / ASESORES
    # ---------------------------

    def create_cliente(self, uid, fields):
        now = datetime.utcnow()
        doc = dict(fields)
        doc.update({
            "_id": uid,
            "asesorAsignado": None,
            "fechaAsignacionAsesor": None,
            "fechaRegistro": doc.get("fechaRegistro") or now,
            "updatedAt": now,
        })
        self.clientes.insert_one(doc)
        return doc

    def create_asesor(self, uid, fields):
        now = datetime.utcnow()
        doc = dict(fields)
        doc.update(default_verification_records())
        doc.update({
            "_id": uid,
            "activo": True,
            "clientesAsignados": [],
            "fechaRegistro": doc.get("fechaRegistro") or now,
            "updatedAt": now,
        })
        self.asesores.insert_one(doc)
        return doc

    def find_cliente(self, uid):
        if not uid:
            return None
        return self.clientes.find_one({"_id": uid})

    def get_cliente(self, uid):
        doc = self.find_cliente(uid)
        if not doc:
            raise NotFoundError("Cliente no encontrado.")
        return doc

    def find_asesor(self, uid):
        if not uid:
            return None
        return self.asesores.find_one({"_id": uid})

    def get_asesor(self, uid):
        doc = self.find_asesor(uid)
        if not doc:
            raise NotFoundError("Asesor no encontrado.")
        return doc

    def update_cliente(self, uid, fields):
        return self._update_one(self.clientes, uid, fields, "Cliente no encontrado.")

    def update_asesor(self, uid, fields):
        return self._update_one(self.asesores, uid, fields, "Asesor no encontrado.")

    def assign_asesor(self, cliente_id, asesor_id, when):
        """Point the client at asesor_id; a previous advisor loses the client."""
        previous = self.clientes.find_one_and_update(
            {"_id": cliente_id},
            {"$set": {
                "asesorAsignado": asesor_id,
                "fechaAsignacionAsesor": when,
                "updatedAt": datetime.utcnow(),
            }},
            return_document=ReturnDocument.BEFORE,
        )
        if previous is None:
            raise NotFoundError("Cliente no encontrado.")
        old_asesor = previous.get("asesorAsignado")
        if old_asesor and old_asesor != asesor_id:
            self.asesores.update_one({"_id": old_asesor}, {"$pull": {"clientesAsignados": cliente_id}})
        self.asesores.update_one({"_id": asesor_id}, {"$addToSet": {"clientesAsignados": cliente_id}})

    def release_asesor(self, cliente_id, asesor_id):
        self._update_one(
            self.clientes, cliente_id,
            {"asesorAsignado": None, "fechaAsignacionAsesor": None},
            "Cliente no encontrado.",
        )
        if asesor_id:
            self.asesores.update_one({"_id": asesor_id}, {"$pull": {"clientesAsignados": cliente_id}})

    def list_assignable_asesores(self):
        return list(self.asesores.find({
            "verification.status": STATUS_VERIFICADO,
            "verificacion.titulo.estado": STATUS_VERIFICADO,
            "activo": True,
        }).sort("nombre", ASCENDING))

    def list_asesores_with_pending_verification(self):
        return list(self.asesores.find({
            "$or": [
                {"verification.status": STATUS_PENDIENTE},
                {"verificacion.titulo.estado": STATUS_PENDIENTE},
                {"verificacion.certificacion.estado": STATUS_PENDIENTE},
            ]
        }))

    def find_clientes(self, ids):
        if not ids:
            return []
        return list(self.clientes.find({"_id": {"$in": list(ids)}}))

    # ---------------------------
    # NOTIFICATIONS (append-only, one document per record)
    # ---------------------------

    def insert_notification(self, doc):
        self.notifications.insert_one(doc)
        return doc

    def find_notifications(self, owner_id):
        return list(self.notifications.find({"ownerId": owner_id}))

    def mark_notification_read(self, owner_id, notification_id):
        result = self.notifications.update_one(
            {"ownerId": owner_id, "id": notification_id},
            {"$set": {"read": True}},
        )
        return result.matched_count > 0

    # ---------------------------
    # CHATS
    # ---------------------------

    def find_chat(self, room_id):
        return self.chats.find_one({"_id": room_id})

    def append_chat_message(self, room_id, client_id, asesor_id, message, unread_field):
        """Append one message, creating the room on first use."""
        self.chats.update_one(
            {"_id": room_id},
            {
                "$setOnInsert": {
                    "clientId": client_id,
                    "asesorId": asesor_id,
                    "createdAt": datetime.utcnow(),
                },
                "$push": {"messages": message},
                "$set": {
                    "lastMessageText": message["text"],
                    "lastMessageTimestamp": message["timestamp"],
                },
                "$inc": {
                    "clientUnreadCount": 1 if unread_field == "clientUnreadCount" else 0,
                    "asesorUnreadCount": 1 if unread_field == "asesorUnreadCount" else 0,
                },
            },
            upsert=True,
        )

    def reset_unread(self, room_id, unread_field):
        self.chats.update_one({"_id": room_id}, {"$set": {unread_field: 0}})

    # ---------------------------
    # OWNED DOCUMENTS (calendar events, goals)
    # ---------------------------

    def find_events(self, owner_id):
        return list(self.eventos.find({"ownerId": owner_id}).sort("start", ASCENDING))

    def insert_event(self, doc):
        return str(self.eventos.insert_one(doc).inserted_id)

    def find_event(self, event_id):
        oid = object_id(event_id)
        if oid is None:
            return None
        return self.eventos.find_one({"_id": oid})

    def update_event(self, event_id, fields):
        self.eventos.update_one({"_id": object_id(event_id)}, {"$set": fields})

    def delete_event(self, event_id):
        self.eventos.delete_one({"_id": object_id(event_id)})

    def find_goals(self, cliente_id):
        return list(self.objetivos.find({"clienteId": cliente_id}).sort("createdAt", ASCENDING))

    def insert_goal(self, doc):
        return str(self.objetivos.insert_one(doc).inserted_id)

    def find_goal(self, goal_id):
        oid = object_id(goal_id)
        if oid is None:
            return None
        return self.objetivos.find_one({"_id": oid})

    def update_goal(self, goal_id, fields):
        self.objetivos.update_one({"_id": object_id(goal_id)}, {"$set": fields})

    def delete_goal(self, goal_id):
        self.objetivos.delete_one({"_id": object_id(goal_id)})

    # ---------------------------

    def _update_one(self, collection, uid, fields, missing_message):
        fields = dict(fields)
        fields["updatedAt"] = datetime.utcnow()
        doc = collection.find_one_and_update(
            {"_id": uid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(missing_message)
        return doc
