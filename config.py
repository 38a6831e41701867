import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


def _admin_emails(raw):
    if not raw:
        return []
    return [e.strip() for e in raw.split(",") if e.strip()]


class Config:
    """
    Settings read from the environment (.env is loaded on import).

    SESSION_SECRET and MONGO_URI are required; everything else has a
    default or switches a feature off when missing.
    """

    def __init__(self, environ=None):
        env = os.environ if environ is None else environ

        self.SECRET_KEY = env.get("SESSION_SECRET")
        if not self.SECRET_KEY:
            raise RuntimeError("SESSION_SECRET is not set in .env")

        self.MONGO_URI = env.get("MONGO_URI")
        if not self.MONGO_URI:
            raise RuntimeError("MONGO_URI is not set in .env")
        self.MONGO_DB_NAME = env.get("MONGO_DB_NAME", "asesoria")

        self.ADMIN_EMAILS = _admin_emails(env.get("ADMIN_EMAILS", ""))
        self.FIREBASE_API_KEY = env.get("FIREBASE_API_KEY") or None
        self.IMGUR_CLIENT_ID = env.get("IMGUR_CLIENT_ID") or None
        self.LOG_LEVEL = env.get("LOG_LEVEL", "INFO").upper()

        production = (env.get("APP_ENV") or env.get("FLASK_ENV") or "") == "production"

        # 1 hour sliding session
        self.SESSION_COOKIE_HTTPONLY = True
        self.SESSION_COOKIE_SECURE = production
        self.PERMANENT_SESSION_LIFETIME = timedelta(hours=1)
        self.SESSION_REFRESH_EACH_REQUEST = True

        # profile photos are capped at 5 MB; leave room for the form envelope
        self.MAX_CONTENT_LENGTH = 6 * 1024 * 1024

    def as_dict(self):
        return {k: v for k, v in vars(self).items() if k.isupper()}
