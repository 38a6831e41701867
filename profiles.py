import logging
import re

from errors import NotFoundError, ValidationError
from fields import clean_text
from store import USER_TYPE_ASESOR, USER_TYPE_CLIENTE, public_doc

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_PHOTO = "/static/images/default-profile.png"

CLIENT_PROFILE_FIELDS = ("nombre", "apellido", "email", "telefono", "direccion")
CLIENT_FINANCIAL_FIELDS = ("ingresosMensuales", "gastosMensuales", "ahorrosActuales")
ADVISOR_PROFILE_FIELDS = (
    "nombre", "apellido", "email", "telefono", "direccion",
    "profesion", "licencia", "especialidad", "experiencia", "bio",
)


def _clean(data, fields):
    return {f: clean_text(data.get(f), f) for f in fields}


def _validate_contact(values):
    if not values["nombre"] or not values["apellido"] or not values["email"] or not values["telefono"]:
        raise ValidationError("Nombre, apellido, email y teléfono son obligatorios.")
    if not EMAIL_RE.match(values["email"]):
        raise ValidationError("El formato del correo electrónico no es válido.")


def _sync_email(store, uid, email):
    user = store.find_user(uid)
    if user and user.get("email") != email.lower():
        other = store.find_user_by_email(email)
        if other and other["_id"] != uid:
            raise ValidationError("Este correo electrónico ya está en uso por otra cuenta.")
        store.set_user_email(uid, email)


def asesor_display_name(asesor):
    if not asesor:
        return "No asignado"
    name = f"{asesor.get('nombre', '')} {asesor.get('apellido', '')}".strip()
    return name or "Nombre no disponible"


# ---------------------------
# PROFILE REGISTRATION
# ---------------------------

def register_profile(store, uid, email, tipo_usuario, data):
    values = _clean(data, ADVISOR_PROFILE_FIELDS if tipo_usuario == USER_TYPE_ASESOR else CLIENT_PROFILE_FIELDS)
    values["email"] = values.get("email") or email
    if not values["nombre"] or not values["apellido"]:
        raise ValidationError("Nombre y apellido son obligatorios.")

    if tipo_usuario == USER_TYPE_CLIENTE:
        values.update(_financial_numbers(data))
        values["perfil_riesgo"] = clean_text(data.get("perfil_riesgo"), "perfil_riesgo") or None
        values["objetivo_principal"] = clean_text(data.get("objetivo_principal"), "objetivo_principal") or None
        store.create_cliente(uid, values)
    elif tipo_usuario == USER_TYPE_ASESOR:
        if not values["profesion"] or not values["licencia"]:
            raise ValidationError("Profesión y licencia son obligatorias para asesores.")
        values["experiencia"] = _int_or_none(values["experiencia"])
        store.create_asesor(uid, values)
    else:
        raise ValidationError("Tipo de usuario no válido.")

    store.set_user_type(uid, tipo_usuario)
    logger.info("Profile %s registered for %s", tipo_usuario, uid)
    return values


def _int_or_none(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _financial_numbers(data):
    out = {}
    for field in CLIENT_FINANCIAL_FIELDS:
        raw = data.get(field)
        if raw in (None, ""):
            continue
        try:
            out[field] = float(raw)
        except (TypeError, ValueError):
            raise ValidationError(f"El campo {field} debe ser un número.")
    return out


# ---------------------------
# CLIENT
# ---------------------------

def client_profile(store, cliente_id):
    cliente = store.get_cliente(cliente_id)
    asesor = store.find_asesor(cliente.get("asesorAsignado")) if cliente.get("asesorAsignado") else None
    if cliente.get("asesorAsignado") and not asesor:
        logger.warning("Asesor %s assigned to %s no longer exists", cliente.get("asesorAsignado"), cliente_id)
    return public_doc(cliente), asesor_display_name(asesor)


def update_client_personal(store, cliente_id, data):
    values = _clean(data, CLIENT_PROFILE_FIELDS)
    _validate_contact(values)
    _sync_email(store, cliente_id, values["email"])
    values["direccion"] = values["direccion"] or None
    return public_doc(store.update_cliente(cliente_id, values))


def update_client_financial(store, cliente_id, data):
    perfil_riesgo = clean_text(data.get("perfil_riesgo"), "perfil_riesgo")
    objetivo = clean_text(data.get("objetivo_principal"), "objetivo_principal")
    if objetivo == "Otro":
        objetivo = clean_text(data.get("otro_objetivo"), "otro_objetivo")

    if not perfil_riesgo:
        raise ValidationError("El perfil de riesgo es obligatorio.")
    if not objetivo:
        raise ValidationError("El objetivo principal es obligatorio.")

    fields = {"perfil_riesgo": perfil_riesgo, "objetivo_principal": objetivo}
    fields.update(_financial_numbers(data))
    return public_doc(store.update_cliente(cliente_id, fields))


def client_card(store, cliente_id):
    cliente = store.find_cliente(cliente_id)
    if not cliente:
        raise NotFoundError("Cliente no encontrado.")
    return {
        "success": True,
        "id": cliente["_id"],
        "nombre": cliente.get("nombre") or "N/A",
        "apellido": cliente.get("apellido") or "N/A",
        "email": cliente.get("email") or "N/A",
        "telefono": cliente.get("telefono") or "N/A",
        "direccion": cliente.get("direccion") or "N/A",
        "fotoPerfilUrl": cliente.get("fotoPerfilUrl") or DEFAULT_PHOTO,
        "ingresosMensuales": cliente.get("ingresosMensuales", 0),
        "ahorrosActuales": cliente.get("ahorrosActuales", 0),
        "objetivo_principal": cliente.get("objetivo_principal") or "N/A",
        "perfil_riesgo": cliente.get("perfil_riesgo") or "N/A",
    }


# ---------------------------
# ADVISOR
# ---------------------------

def advisor_profile(store, asesor_id):
    return public_doc(store.get_asesor(asesor_id))


def update_advisor_personal(store, asesor_id, data):
    values = _clean(data, ("nombre", "apellido", "email", "telefono", "direccion", "especialidad", "bio"))
    _validate_contact(values)
    _sync_email(store, asesor_id, values["email"])
    fields = {k: v for k, v in values.items() if v or k in ("nombre", "apellido", "email", "telefono")}
    return public_doc(store.update_asesor(asesor_id, fields))


def advisor_card(store, asesor_id):
    asesor = store.find_asesor(asesor_id)
    if not asesor:
        raise NotFoundError("Asesor no encontrado.")
    return {
        "_id": asesor["_id"],
        "nombre": asesor.get("nombre"),
        "apellido": asesor.get("apellido"),
        "email": asesor.get("email"),
        "telefono": asesor.get("telefono"),
        "especialidad": asesor.get("especialidad") or "No especificada",
        "fotoPerfilUrl": asesor.get("fotoPerfilUrl") or DEFAULT_PHOTO,
        "descripcion": asesor.get("bio") or "Asesor financiero experimentado.",
    }


def set_profile_photo(store, uid, user_type, url):
    if user_type == USER_TYPE_ASESOR:
        store.update_asesor(uid, {"fotoPerfilUrl": url})
    elif user_type == USER_TYPE_CLIENTE:
        store.update_cliente(uid, {"fotoPerfilUrl": url})
    else:
        raise ValidationError("Tipo de usuario no reconocido para la subida de foto.")
    logger.info("Profile photo updated for %s %s", user_type, uid)
