from datetime import datetime

from errors import NotFoundError, ValidationError
from fields import clean_text

NOT_FOUND_MESSAGE = "Objetivo no encontrado o no autorizado."


def _amount(value, label, default=None):
    if value in (None, ""):
        if default is None:
            raise ValidationError(f"{label} es requerido.")
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} debe ser un número.")


def _goal_fields(data):
    nombre = clean_text(data.get("nombre"), "nombre")
    if not nombre or data.get("montoObjetivo") in (None, ""):
        raise ValidationError("Nombre y monto objetivo son requeridos.")
    return {
        "nombre": nombre,
        "montoObjetivo": _amount(data.get("montoObjetivo"), "El monto objetivo"),
        "montoActual": _amount(data.get("montoActual"), "El monto actual", default=0.0),
        "fechaLimite": clean_text(data.get("fechaLimite"), "fechaLimite") or None,
    }


def _serialize(doc):
    return {
        "id": str(doc["_id"]),
        "nombre": doc.get("nombre"),
        "montoObjetivo": doc.get("montoObjetivo"),
        "montoActual": doc.get("montoActual", 0.0),
        "fechaLimite": doc.get("fechaLimite"),
    }


def _owned_goal(store, cliente_id, goal_id):
    goal = store.find_goal(goal_id)
    if not goal or goal.get("clienteId") != cliente_id:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return goal


def list_goals(store, cliente_id):
    return [_serialize(g) for g in store.find_goals(cliente_id)]


def get_goal(store, cliente_id, goal_id):
    return _serialize(_owned_goal(store, cliente_id, goal_id))


def create_goal(store, cliente_id, data):
    fields = _goal_fields(data)
    fields.update({"clienteId": cliente_id, "status": "pendiente", "createdAt": datetime.utcnow()})
    return store.insert_goal(fields)


def update_goal(store, cliente_id, goal_id, data):
    _owned_goal(store, cliente_id, goal_id)
    fields = _goal_fields(data)
    fields["updatedAt"] = datetime.utcnow()
    store.update_goal(goal_id, fields)


def delete_goal(store, cliente_id, goal_id):
    _owned_goal(store, cliente_id, goal_id)
    store.delete_goal(goal_id)
