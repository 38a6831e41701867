"""
verification.py

Advisor verification: KYC identity documents plus the professional title
and certification. Each section moves independently through

    no-enviado -> pendiente -> verificado

with `rechazado` set by an admin review (the advisor may resubmit).
A `verificado` section is locked: submitted input for it is ignored.
"""

import logging
import re
from datetime import datetime

from errors import NotFoundError, ValidationError
from notifications import add_notification
from store import (
    STATUS_NO_ENVIADO,
    STATUS_PENDIENTE,
    STATUS_RECHAZADO,
    STATUS_VERIFICADO,
)

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)

VERIFICATION_LINK = "/asesor/verificar_identidad"
PROFILE_LINK = "/perfilasesor"

REJECTION_NOTE = (
    "Tu documento fue rechazado. Esto puede deberse a: documento ilegible, "
    "información incompleta, documento expirado o no válido, datos no "
    "coincidentes, formato incorrecto, o foto no clara. Por favor, revisa tu "
    "documento y vuelve a subirlo."
)


class Section:

    def __init__(self, key, path, status_key, notes_key, fields, required, url_fields, labels, title):
        self.key = key
        self.path = path
        self.status_key = status_key
        self.notes_key = notes_key
        self.fields = fields
        self.required = required
        self.url_fields = url_fields
        self.labels = labels
        self.title = title

    def form_name(self, field):
        return f"{self.key}_{field}"

    def stored(self, asesor):
        node = asesor
        for part in self.path.split("."):
            node = (node or {}).get(part) or {}
        return dict(node)

    def status(self, asesor):
        return self.stored(asesor).get(self.status_key) or STATUS_NO_ENVIADO

    def submitted_values(self, form):
        return {f: (form.get(self.form_name(f)) or "").strip() for f in self.fields}

    def validate(self, values):
        errors = []
        for field in self.required:
            if not values.get(field):
                errors.append(f"{self.title}: el campo {self.labels[field]} es obligatorio.")
        for field in self.url_fields:
            value = values.get(field)
            if value and not URL_RE.match(value):
                errors.append(f"{self.title}: {self.labels[field]} debe ser una URL válida (http/https).")
        return errors

    def differs(self, stored, values):
        return any((stored.get(f) or "") != values[f] for f in self.fields)


SECTIONS = [
    Section(
        key="kyc",
        path="verification",
        status_key="status",
        notes_key="notes",
        fields=["documentType", "documentNumber", "frontUrl", "backUrl", "selfieUrl"],
        required=["documentType", "documentNumber", "frontUrl", "backUrl", "selfieUrl"],
        url_fields=["frontUrl", "backUrl", "selfieUrl"],
        labels={
            "documentType": "tipo de documento",
            "documentNumber": "número de documento",
            "frontUrl": "foto frontal",
            "backUrl": "foto posterior",
            "selfieUrl": "selfie",
        },
        title="Identificación (KYC)",
    ),
    Section(
        key="titulo",
        path="verificacion.titulo",
        status_key="estado",
        notes_key="observaciones",
        fields=["url", "institucion"],
        required=["url"],
        url_fields=["url"],
        labels={"url": "URL del título", "institucion": "institución"},
        title="Título profesional",
    ),
    Section(
        key="certificacion",
        path="verificacion.certificacion",
        status_key="estado",
        notes_key="observaciones",
        fields=["url", "entidad"],
        required=["url"],
        url_fields=["url"],
        labels={"url": "URL de la certificación", "entidad": "entidad certificadora"},
        title="Certificación profesional",
    ),
]

SECTIONS_BY_KEY = {s.key: s for s in SECTIONS}


class VerificationFormError(ValidationError):
    """Invalid submission; carries the form values to re-render with."""

    def __init__(self, errors, form_state):
        super().__init__(errors)
        self.form_state = form_state


def form_state(asesor, form=None):
    """Stored values keyed by form field name, with submitted input laid over them."""
    state = {}
    for section in SECTIONS:
        stored = section.stored(asesor)
        for field in section.fields:
            state[section.form_name(field)] = stored.get(field) or ""
        state[f"{section.key}_status"] = section.status(asesor)
    for name, value in (form or {}).items():
        if name in state and not name.endswith("_status") and (value or "").strip():
            state[name] = value.strip()
    return state


def submit_verification(store, asesor_id, form):
    """
    Process one verification form submission.

    Returns the list of section keys that changed (empty when the input
    matched what was stored). All changed sections are written with a
    single update and exactly one notification is sent.
    """
    asesor = store.get_asesor(asesor_id)
    now = datetime.utcnow()
    errors = []
    updates = {}
    changed = []
    submitted_any = False

    for section in SECTIONS:
        if section.status(asesor) == STATUS_VERIFICADO:
            continue
        values = section.submitted_values(form)
        if not any(values.values()):
            continue
        submitted_any = True

        section_errors = section.validate(values)
        if section_errors:
            errors.extend(section_errors)
            continue

        stored = section.stored(asesor)
        if not section.differs(stored, values):
            continue

        record = dict(stored)
        record.update({f: (values[f] or None) for f in section.fields})
        record[section.status_key] = STATUS_PENDIENTE
        record[section.notes_key] = None
        record["submittedAt"] = now
        updates[section.path] = record
        changed.append(section.key)

    if errors:
        raise VerificationFormError(errors, form_state(asesor, form))
    if not submitted_any:
        raise VerificationFormError(
            ["No se enviaron datos de verificación. Completa al menos una sección pendiente."],
            form_state(asesor, form),
        )
    if not changed:
        return []

    store.update_asesor(asesor_id, updates)
    logger.info("Verification sections %s submitted by %s", changed, asesor_id)

    if "kyc" in changed:
        message = "Tus documentos de identidad (KYC) fueron enviados y están pendientes de revisión."
    else:
        message = "Tus credenciales profesionales fueron enviadas y están pendientes de revisión."
    add_notification(store, asesor_id, message, VERIFICATION_LINK)
    return changed


def review_section(store, asesor_id, section_key, action):
    """Admin decision on one pending section: action is 'verificar' or 'rechazar'."""
    section = SECTIONS_BY_KEY.get(section_key) if isinstance(section_key, str) else None
    if section is None:
        raise ValidationError("Tipo de verificación inválido.")
    if action not in ("verificar", "rechazar"):
        raise ValidationError("Acción inválida.")
    if not store.find_asesor(asesor_id):
        raise NotFoundError("Asesor no encontrado.")

    status_path = f"{section.path}.{section.status_key}"
    notes_path = f"{section.path}.{section.notes_key}"
    if action == "verificar":
        new_status = STATUS_VERIFICADO
        updates = {status_path: new_status, notes_path: None}
        message = f"Tu {section.title} ha sido aprobada. ¡Felicidades! Ya puedes acceder a todas las funcionalidades."
    else:
        new_status = STATUS_RECHAZADO
        updates = {status_path: new_status, notes_path: REJECTION_NOTE}
        message = f"Tu {section.title} fue rechazada. Motivo: {REJECTION_NOTE}"

    store.update_asesor(asesor_id, updates)
    add_notification(store, asesor_id, message, PROFILE_LINK)
    logger.info("Admin set %s of %s to %s", section_key, asesor_id, new_status)
    return new_status


def pending_sections(asesor):
    return [s.key for s in SECTIONS if s.status(asesor) == STATUS_PENDIENTE]
