import pytest

import verification
from errors import NotFoundError, ValidationError
from store import STATUS_PENDIENTE, STATUS_RECHAZADO, STATUS_VERIFICADO

KYC_FORM = {
    "kyc_documentType": "DNI",
    "kyc_documentNumber": "12345678",
    "kyc_frontUrl": "https://img.example.com/front.png",
    "kyc_backUrl": "https://img.example.com/back.png",
    "kyc_selfieUrl": "https://img.example.com/selfie.png",
}


def test_submit_kyc_sets_pending_and_notifies_once(store, make_asesor):
    make_asesor("a1")
    form = dict(KYC_FORM, titulo_url="https://docs.example.com/titulo.pdf", titulo_institucion="UNAM")

    changed = verification.submit_verification(store, "a1", form)

    assert changed == ["kyc", "titulo"]
    asesor = store.get_asesor("a1")
    assert asesor["verification"]["status"] == STATUS_PENDIENTE
    assert asesor["verification"]["documentNumber"] == "12345678"
    assert asesor["verification"]["submittedAt"] is not None
    assert asesor["verificacion"]["titulo"]["estado"] == STATUS_PENDIENTE
    assert asesor["verificacion"]["certificacion"]["estado"] == "no-enviado"

    notes = store.find_notifications("a1")
    assert len(notes) == 1
    assert "KYC" in notes[0]["message"]
    assert notes[0]["link"] == "/asesor/verificar_identidad"


def test_resubmitting_same_values_changes_nothing(store, make_asesor):
    make_asesor("a1")
    verification.submit_verification(store, "a1", KYC_FORM)
    assert verification.submit_verification(store, "a1", KYC_FORM) == []
    assert len(store.find_notifications("a1")) == 1


def test_verified_section_is_locked(store, make_asesor):
    make_asesor("a1")
    store.update_asesor("a1", {
        "verification.status": STATUS_VERIFICADO,
        "verification.documentNumber": "A-0001",
    })
    form = dict(KYC_FORM, titulo_url="https://docs.example.com/titulo.pdf")

    changed = verification.submit_verification(store, "a1", form)

    assert changed == ["titulo"]
    asesor = store.get_asesor("a1")
    assert asesor["verification"]["status"] == STATUS_VERIFICADO
    assert asesor["verification"]["documentNumber"] == "A-0001"


def test_invalid_submission_reports_errors_and_keeps_input(store, make_asesor):
    make_asesor("a1")
    form = dict(KYC_FORM, kyc_frontUrl="ftp://nope", kyc_selfieUrl="")

    with pytest.raises(verification.VerificationFormError) as exc:
        verification.submit_verification(store, "a1", form)

    assert len(exc.value.errors) == 2
    assert exc.value.form_state["kyc_documentNumber"] == "12345678"
    assert store.get_asesor("a1")["verification"]["status"] == "no-enviado"
    assert store.find_notifications("a1") == []


def test_empty_submission_is_rejected(store, make_asesor):
    make_asesor("a1")
    with pytest.raises(verification.VerificationFormError):
        verification.submit_verification(store, "a1", {})


def test_review_approve_and_reject(store, make_asesor):
    make_asesor("a1")
    verification.submit_verification(store, "a1", KYC_FORM)

    assert verification.review_section(store, "a1", "kyc", "rechazar") == STATUS_RECHAZADO
    asesor = store.get_asesor("a1")
    assert asesor["verification"]["notes"] == verification.REJECTION_NOTE

    verification.submit_verification(store, "a1", dict(KYC_FORM, kyc_documentNumber="999"))
    assert verification.review_section(store, "a1", "kyc", "verificar") == STATUS_VERIFICADO
    asesor = store.get_asesor("a1")
    assert asesor["verification"]["status"] == STATUS_VERIFICADO
    assert asesor["verification"]["notes"] is None

    links = {n["link"] for n in store.find_notifications("a1")}
    assert "/perfilasesor" in links


def test_review_rejects_bad_input(store, make_asesor):
    make_asesor("a1")
    with pytest.raises(ValidationError):
        verification.review_section(store, "a1", "pasaporte", "verificar")
    with pytest.raises(ValidationError):
        verification.review_section(store, "a1", "kyc", "borrar")
    with pytest.raises(NotFoundError):
        verification.review_section(store, "ghost", "kyc", "verificar")


def test_pending_sections(store, make_asesor):
    make_asesor("a1")
    verification.submit_verification(store, "a1", {"certificacion_url": "https://x.example.com/c.pdf"})
    assert verification.pending_sections(store.get_asesor("a1")) == ["certificacion"]
    assert [a["_id"] for a in store.list_asesores_with_pending_verification()] == ["a1"]
