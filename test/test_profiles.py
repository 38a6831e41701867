import pytest

import profiles
from errors import NotFoundError, ValidationError


def test_register_cliente_profile(store):
    store.create_user("u1", "u1@example.com")
    values = profiles.register_profile(store, "u1", "u1@example.com", "cliente", {
        "nombre": "Lucía", "apellido": "Mora", "ingresosMensuales": "2500.5",
    })

    cliente = store.get_cliente("u1")
    assert cliente["email"] == "u1@example.com"
    assert cliente["ingresosMensuales"] == 2500.5
    assert cliente["asesorAsignado"] is None
    assert store.get_user("u1")["userType"] == "cliente"
    assert values["nombre"] == "Lucía"


def test_register_asesor_requires_license(store):
    store.create_user("u1", "u1@example.com")
    with pytest.raises(ValidationError):
        profiles.register_profile(store, "u1", "u1@example.com", "asesor", {
            "nombre": "Ana", "apellido": "Paz", "profesion": "Contadora",
        })
    assert store.find_asesor("u1") is None


def test_register_unknown_type(store):
    store.create_user("u1", "u1@example.com")
    with pytest.raises(ValidationError):
        profiles.register_profile(store, "u1", "u1@example.com", "admin", {"nombre": "A", "apellido": "B"})


def test_update_client_personal_syncs_email(store, make_cliente):
    make_cliente("c1")
    cliente = profiles.update_client_personal(store, "c1", {
        "nombre": "Carla", "apellido": "Ruiz", "email": "carla@example.com", "telefono": "777",
    })
    assert cliente["email"] == "carla@example.com"
    assert store.get_user("c1")["email"] == "carla@example.com"


def test_update_client_personal_rejects_taken_email(store, make_cliente):
    make_cliente("c1")
    make_cliente("c2")
    with pytest.raises(ValidationError):
        profiles.update_client_personal(store, "c1", {
            "nombre": "Carla", "apellido": "Ruiz", "email": "c2@example.com", "telefono": "777",
        })


def test_update_client_personal_validates_email(store, make_cliente):
    make_cliente("c1")
    with pytest.raises(ValidationError):
        profiles.update_client_personal(store, "c1", {
            "nombre": "Carla", "apellido": "Ruiz", "email": "no-at-sign", "telefono": "777",
        })


def test_update_client_financial_other_goal(store, make_cliente):
    make_cliente("c1")
    cliente = profiles.update_client_financial(store, "c1", {
        "perfil_riesgo": "Moderado",
        "objetivo_principal": "Otro",
        "otro_objetivo": "Viajar",
        "ahorrosActuales": "1000",
    })
    assert cliente["objetivo_principal"] == "Viajar"
    assert cliente["ahorrosActuales"] == 1000.0

    with pytest.raises(ValidationError):
        profiles.update_client_financial(store, "c1", {"perfil_riesgo": "Moderado", "objetivo_principal": "Otro"})


def test_client_profile_names_assigned_advisor(store, make_cliente, make_asesor):
    make_cliente("c1")
    make_asesor("a1", verified=True)
    assert profiles.client_profile(store, "c1")[1] == "No asignado"
    store.assign_asesor("c1", "a1", None)
    assert profiles.client_profile(store, "c1")[1] == "Andrés López"


def test_cards(store, make_cliente, make_asesor):
    make_cliente("c1")
    make_asesor("a1")
    assert profiles.client_card(store, "c1")["direccion"] == "N/A"
    assert profiles.advisor_card(store, "a1")["especialidad"] == "No especificada"
    with pytest.raises(NotFoundError):
        profiles.advisor_card(store, "ghost")


def test_set_profile_photo(store, make_asesor):
    make_asesor("a1")
    profiles.set_profile_photo(store, "a1", "asesor", "https://i.imgur.com/x.png")
    assert store.get_asesor("a1")["fotoPerfilUrl"] == "https://i.imgur.com/x.png"
    with pytest.raises(ValidationError):
        profiles.set_profile_photo(store, "a1", "unregistered", "https://i.imgur.com/x.png")
