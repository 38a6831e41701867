from datetime import timedelta

import pytest

from config import Config


def test_missing_session_secret_fails_fast():
    with pytest.raises(RuntimeError):
        Config({"MONGO_URI": "mongodb://x"})


def test_missing_mongo_uri_fails_fast():
    with pytest.raises(RuntimeError):
        Config({"SESSION_SECRET": "s"})


def test_defaults_and_admin_list():
    cfg = Config({
        "SESSION_SECRET": "s",
        "MONGO_URI": "mongodb://x",
        "ADMIN_EMAILS": " Admin@Example.com , ,ops@example.com",
    })
    assert cfg.MONGO_DB_NAME == "asesoria"
    assert cfg.ADMIN_EMAILS == ["Admin@Example.com", "ops@example.com"]
    assert cfg.FIREBASE_API_KEY is None
    assert cfg.SESSION_COOKIE_SECURE is False
    assert cfg.PERMANENT_SESSION_LIFETIME == timedelta(hours=1)
    assert cfg.as_dict()["SECRET_KEY"] == "s"


def test_production_uses_secure_cookie():
    cfg = Config({"SESSION_SECRET": "s", "MONGO_URI": "mongodb://x", "APP_ENV": "production"})
    assert cfg.SESSION_COOKIE_SECURE is True
