"""
identity_client.py

Identity helpers for the advisory platform.

- IdentityToolkitClient: the hosted identity REST API (key from env)
- LocalIdentityProvider: bcrypt hashes kept in users.passwordHash, used
  when no FIREBASE_API_KEY is configured (development and tests)

Both expose:
- sign_up(email, password, display_name) -> IdentityResult
- sign_in(email, password)               -> IdentityResult
- update_password(id_token, new_password)

Failures raise UpstreamError whose .code is the identity API error code.
"""

import logging
import uuid
from collections import namedtuple

import bcrypt
import requests

from errors import UpstreamError

logger = logging.getLogger(__name__)

IdentityResult = namedtuple("IdentityResult", ["uid", "email", "id_token"])

# ---------------------------------------------------------------------------
# Error codes -> user-facing messages
# ---------------------------------------------------------------------------

IDENTITY_MESSAGES = {
    "EMAIL_NOT_FOUND": "Correo electrónico o contraseña incorrectos.",
    "INVALID_PASSWORD": "Correo electrónico o contraseña incorrectos.",
    "INVALID_LOGIN_CREDENTIALS": "Correo electrónico o contraseña incorrectos.",
    "USER_DISABLED": "Tu cuenta ha sido deshabilitada.",
    "INVALID_EMAIL": "El formato del correo electrónico no es válido.",
    "EMAIL_EXISTS": "Este correo electrónico ya está en uso.",
    "WEAK_PASSWORD": "La contraseña debe tener al menos 6 caracteres.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Demasiados intentos. Inténtalo de nuevo más tarde.",
    "CREDENTIAL_TOO_OLD_LOGIN_AGAIN": "Por favor, inicia sesión nuevamente.",
    "TOKEN_EXPIRED": "Por favor, inicia sesión nuevamente.",
}

DEFAULT_IDENTITY_MESSAGE = "Error de autenticación. Por favor, inténtalo de nuevo."

MIN_PASSWORD_LENGTH = 6


def describe_identity_error(code):
    return IDENTITY_MESSAGES.get(code, DEFAULT_IDENTITY_MESSAGE)


def _identity_error(code, status_code=400):
    return UpstreamError(code, describe_identity_error(code), status_code)


# ---------------------------------------------------------------------------
# Hosted identity REST API
# ---------------------------------------------------------------------------

class IdentityToolkitClient:

    BASE_URL = "https://identitytoolkit.googleapis.com/v1"

    def __init__(self, api_key, timeout=10):
        if not api_key:
            raise RuntimeError("FIREBASE_API_KEY must be set in .env")
        self.api_key = api_key
        self.timeout = timeout

    def _post(self, endpoint, payload):
        url = f"{self.BASE_URL}/{endpoint}"
        try:
            response = requests.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Identity API unreachable (%s): %s", endpoint, e)
            raise UpstreamError("UNAVAILABLE", DEFAULT_IDENTITY_MESSAGE)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            raw = ((data.get("error") or {}).get("message") or "UNKNOWN")
            # messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
            code = raw.split(":")[0].strip()
            logger.warning("Identity API %s failed: %s", endpoint, raw)
            raise _identity_error(code, 401 if code in ("INVALID_PASSWORD", "EMAIL_NOT_FOUND",
                                                        "INVALID_LOGIN_CREDENTIALS") else 400)
        return data

    def sign_up(self, email, password, display_name=None):
        data = self._post("accounts:signUp", {
            "email": email,
            "password": password,
            "displayName": display_name,
            "returnSecureToken": True,
        })
        return IdentityResult(data["localId"], data.get("email", email), data.get("idToken"))

    def sign_in(self, email, password):
        data = self._post("accounts:signInWithPassword", {
            "email": email,
            "password": password,
            "returnSecureToken": True,
        })
        return IdentityResult(data["localId"], data.get("email", email), data.get("idToken"))

    def update_password(self, id_token, new_password):
        self._post("accounts:update", {
            "idToken": id_token,
            "password": new_password,
            "returnSecureToken": True,
        })


# ---------------------------------------------------------------------------
# Local provider (bcrypt)
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


class LocalIdentityProvider:
    """
    Credentials stored in the users collection. The id token handed out
    by sign_in is simply the user id.
    """

    def __init__(self, store):
        self.store = store

    def sign_up(self, email, password, display_name=None):
        email = (email or "").strip().lower()
        if "@" not in email:
            raise _identity_error("INVALID_EMAIL")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise _identity_error("WEAK_PASSWORD")
        if self.store.find_user_by_email(email):
            raise _identity_error("EMAIL_EXISTS")
        uid = uuid.uuid4().hex
        self.store.create_user(uid, email, password_hash=hash_password(password),
                               display_name=display_name)
        return IdentityResult(uid, email, uid)

    def sign_in(self, email, password):
        user = self.store.find_user_by_email(email)
        if not user:
            raise _identity_error("EMAIL_NOT_FOUND", 401)
        if user.get("disabled"):
            raise _identity_error("USER_DISABLED", 403)
        if not verify_password(password, user.get("passwordHash") or ""):
            raise _identity_error("INVALID_PASSWORD", 401)
        return IdentityResult(user["_id"], user["email"], user["_id"])

    def update_password(self, id_token, new_password):
        if len(new_password or "") < MIN_PASSWORD_LENGTH:
            raise _identity_error("WEAK_PASSWORD")
        if not self.store.find_user(id_token):
            raise _identity_error("TOKEN_EXPIRED", 401)
        self.store.set_password_hash(id_token, hash_password(new_password))
