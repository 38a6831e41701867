import logging
from datetime import datetime

from errors import NotFoundError, ValidationError
from notifications import add_notification
from store import STATUS_VERIFICADO

logger = logging.getLogger(__name__)

CHAT_REDIRECT = "/chat-personal"
BROWSE_REDIRECT = "/contacto-asesor"


class AssignmentRejected(ValidationError):
    """The advisor exists but cannot take clients right now."""


def is_assignable(asesor):
    return (
        (asesor.get("verification") or {}).get("status") == STATUS_VERIFICADO
        and ((asesor.get("verificacion") or {}).get("titulo") or {}).get("estado") == STATUS_VERIFICADO
        and asesor.get("activo") is True
    )


def assign(store, cliente_id, asesor_id):
    """
    Bind a client to an advisor and notify the advisor.

    Nothing is written unless the advisor has KYC and title verified and
    is active. Returns the redirect target for the client (personal chat).
    """
    if not asesor_id:
        raise ValidationError("ID de asesor no proporcionado.")

    cliente = store.find_cliente(cliente_id)
    if not cliente:
        raise NotFoundError("Cliente no encontrado.")
    asesor = store.find_asesor(asesor_id)
    if not asesor:
        raise NotFoundError("Asesor no encontrado.")

    if not is_assignable(asesor):
        raise AssignmentRejected("El asesor seleccionado aún no ha sido verificado completamente.")

    store.assign_asesor(cliente_id, asesor_id, datetime.utcnow())

    nombre = f"{cliente.get('nombre', '')} {cliente.get('apellido', '')}".strip() or "Un cliente"
    add_notification(
        store,
        asesor_id,
        f"¡Tienes un nuevo cliente! {nombre} te ha seleccionado como su asesor.",
        f"/clientes/{cliente_id}/perfil",
    )
    logger.info("Cliente %s assigned to asesor %s", cliente_id, asesor_id)
    return CHAT_REDIRECT


def release(store, cliente_id):
    cliente = store.get_cliente(cliente_id)
    asesor_id = cliente.get("asesorAsignado")
    store.release_asesor(cliente_id, asesor_id)
    logger.info("Cliente %s released asesor %s", cliente_id, asesor_id)
    return asesor_id


def available_advisors(store):
    return store.list_assignable_asesores()
