# test/conftest.py

import os

os.environ["SESSION_SECRET"] = "test-secret"
os.environ["MONGO_URI"] = "mongodb://localhost:27017"
os.environ["MONGO_DB_NAME"] = "asesoria_test"
os.environ["ADMIN_EMAILS"] = "admin@example.com"
os.environ["FIREBASE_API_KEY"] = ""
os.environ["IMGUR_CLIENT_ID"] = ""

import mongomock
import pytest

from app import app as flask_app
from identity_client import LocalIdentityProvider, hash_password
from store import STATUS_VERIFICADO, AdvisoryStore


# --------------------------------------------------------
# STORE / APP FIXTURES: IN-MEMORY DATABASE, LOCAL IDENTITY
# --------------------------------------------------------
@pytest.fixture
def store():
    s = AdvisoryStore(mongomock.MongoClient().get_database("asesoria_test"))
    s.ensure_indexes()
    return s


@pytest.fixture
def app(store):
    flask_app.config.update(TESTING=True)
    flask_app.extensions["advisory_store"] = store
    flask_app.extensions["identity_provider"] = LocalIdentityProvider(store)
    yield flask_app
    flask_app.extensions.pop("advisory_store", None)
    flask_app.extensions.pop("identity_provider", None)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login_as(client, store):
    def _login(uid, user_type, email=None, name="Test"):
        if not store.find_user(uid):
            store.create_user(uid, email or f"{uid}@example.com", user_type)
        with client.session_transaction() as s:
            s["userId"] = uid
            s["userEmail"] = email or f"{uid}@example.com"
            s["userType"] = user_type
            s["userName"] = name
        return client
    return _login


# --------------------------------------------------------
# DATA HELPERS
# --------------------------------------------------------
@pytest.fixture
def make_cliente(store):
    def _make(uid="c1", **fields):
        store.create_user(uid, f"{uid}@example.com", "cliente", hash_password("secret1"))
        values = {"nombre": "Carla", "apellido": "Ruiz", "email": f"{uid}@example.com", "telefono": "555"}
        values.update(fields)
        return store.create_cliente(uid, values)
    return _make


@pytest.fixture
def make_asesor(store):
    def _make(uid="a1", verified=False, **fields):
        store.create_user(uid, f"{uid}@example.com", "asesor", hash_password("secret1"))
        values = {
            "nombre": "Andrés", "apellido": "López", "email": f"{uid}@example.com",
            "telefono": "555", "profesion": "Economista", "licencia": "L-1",
        }
        values.update(fields)
        doc = store.create_asesor(uid, values)
        if verified:
            store.update_asesor(uid, {
                "verification.status": STATUS_VERIFICADO,
                "verificacion.titulo.estado": STATUS_VERIFICADO,
            })
        return doc
    return _make
