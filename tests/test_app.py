"""
Unit tests for application wiring in social.graze.passport.app

Covers settings parsing, passport store construction from settings and the
internal probe handlers.
"""

import json
import logging

from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer
from pydantic import ValidationError
import pytest

from social.graze.passport.app.cli import configure_logging
from social.graze.passport.app.config import DatabaseSessionMakerAppKey, Settings
from social.graze.passport.app.handlers.internal import (
    handle_internal_alive,
    handle_internal_ready,
)
from social.graze.passport.app.server import build_passport_store
from social.graze.passport.hashing import ScryptPasswordHasher
from tests.test_helpers import mock_session_maker


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("HASH_PASSWORDS", "SCRYPT_N", "ACCESS_TOKEN_BYTES", "PG_DSN", "DATABASE_URL"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.hash_passwords is True
        assert settings.scrypt_n == 2**14
        assert settings.access_token_bytes == 32
        assert str(settings.pg_dsn).startswith("postgresql+asyncpg://")

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("HASH_PASSWORDS", "false")
        monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://user:pw@dbhost:5432/passports")
        monkeypatch.setenv("ACCESS_TOKEN_BYTES", "48")

        settings = Settings()

        assert settings.hash_passwords is False
        assert settings.access_token_bytes == 48
        assert "dbhost" in str(settings.pg_dsn)

    def test_scrypt_n_must_be_power_of_two(self, monkeypatch):
        monkeypatch.setenv("SCRYPT_N", "1000")

        with pytest.raises(ValidationError):
            Settings()


class TestBuildPassportStore:
    def test_hasher_enabled(self, monkeypatch):
        monkeypatch.setenv("HASH_PASSWORDS", "true")
        monkeypatch.setenv("SCRYPT_N", "1024")
        session_maker, _ = mock_session_maker()

        store = build_passport_store(Settings(), session_maker)

        assert isinstance(store._password_hasher, ScryptPasswordHasher)
        assert store._password_hasher.n == 1024

    def test_hasher_disabled(self, monkeypatch):
        monkeypatch.setenv("HASH_PASSWORDS", "false")
        session_maker, _ = mock_session_maker()

        store = build_passport_store(Settings(), session_maker)

        assert store._password_hasher is None


class TestInternalHandlers:
    def make_app(self, session_maker) -> web.Application:
        app = web.Application()
        app[DatabaseSessionMakerAppKey] = session_maker
        app.add_routes(
            [
                web.get("/internal/alive", handle_internal_alive),
                web.get("/internal/ready", handle_internal_ready),
            ]
        )
        return app

    async def test_alive(self):
        session_maker, _ = mock_session_maker()
        async with TestClient(TestServer(self.make_app(session_maker))) as client:
            response = await client.get("/internal/alive")
            assert response.status == 200
            assert await response.text() == "Ok"

    async def test_ready(self):
        session_maker, database_session = mock_session_maker()
        async with TestClient(TestServer(self.make_app(session_maker))) as client:
            response = await client.get("/internal/ready")
            assert response.status == 200
        database_session.execute.assert_awaited_once()

    async def test_not_ready_when_database_fails(self):
        session_maker, _ = mock_session_maker(execute_error=ConnectionRefusedError())
        async with TestClient(TestServer(self.make_app(session_maker))) as client:
            response = await client.get("/internal/ready")
            assert response.status == 503


class TestConfigureLogging:
    def test_logging_config_file(self, monkeypatch, tmp_path):
        config_file = tmp_path / "logging.json"
        config_file.write_text(
            json.dumps(
                {
                    "version": 1,
                    "disable_existing_loggers": False,
                    "loggers": {"social.graze.passport": {"level": "WARNING"}},
                }
            )
        )
        monkeypatch.setenv("LOGGING_CONFIG_FILE", str(config_file))

        try:
            configure_logging(Settings())
            assert logging.getLogger("social.graze.passport").level == logging.WARNING
        finally:
            logging.getLogger("social.graze.passport").setLevel(logging.NOTSET)
