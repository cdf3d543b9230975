"""Settings validation."""

import pytest
from pydantic import ValidationError

from app.core.config import DEV_SECRET_KEY, Settings


def test_production_refuses_the_development_secret(monkeypatch):
    monkeypatch.delenv("MINIDRIVE_SECRET_KEY", raising=False)

    with pytest.raises(ValidationError):
        Settings(environment="production", _env_file=None)


def test_production_accepts_a_configured_secret():
    settings = Settings(environment="production", secret_key="a-real-secret-from-the-vault-0123456789", _env_file=None)

    assert settings.is_production


def test_development_keeps_the_default_secret(monkeypatch):
    monkeypatch.delenv("MINIDRIVE_SECRET_KEY", raising=False)

    assert Settings(environment="development", _env_file=None).secret_key == DEV_SECRET_KEY


def test_receive_url_joins_base_and_token():
    settings = Settings(public_base_url="https://drive.example/", _env_file=None)

    assert settings.receive_url("abc") == "https://drive.example/receive/abc"
