"""Notification publisher dependency and CORS wiring tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyquest import dependencies
from studyquest.config import Settings
from studyquest.middleware.cors import setup_cors


class TestNotificationPublisher:
    def test_returns_shared_client(self, monkeypatch):
        client = MagicMock()
        monkeypatch.setattr(dependencies, "get_redis", lambda: client)
        assert dependencies.get_notification_publisher() is client

    def test_disabled_by_setting(self, monkeypatch):
        monkeypatch.setenv("SQ_PUBLISH_ENGAGEMENT_EVENTS", "false")
        dependencies.get_settings.cache_clear()
        monkeypatch.setattr(dependencies, "get_redis", MagicMock())
        assert dependencies.get_notification_publisher() is None

    def test_none_without_redis(self, monkeypatch):
        monkeypatch.setattr(dependencies, "get_redis", lambda: None)
        assert dependencies.get_notification_publisher() is None


def _cors_options(app: FastAPI) -> dict:
    (middleware,) = [m for m in app.user_middleware if m.cls is CORSMiddleware]
    return middleware.kwargs


class TestCors:
    def test_uses_configured_methods_and_headers(self):
        app = FastAPI()
        settings = Settings(
            cors_origins=["https://app.studyquest.example"],
            cors_allow_methods=["GET"],
            cors_allow_headers=["Authorization"],
        )

        setup_cors(app, settings)

        options = _cors_options(app)
        assert options["allow_origins"] == ["https://app.studyquest.example"]
        assert options["allow_methods"] == ["GET"]
        assert options["allow_headers"] == ["Authorization"]
        assert options["allow_credentials"] is True
        assert options["expose_headers"] == ["X-Request-Id"]

    @pytest.mark.parametrize("origins", [["*"], ["https://a.example", "*"]])
    def test_wildcard_origin_drops_credentials(self, origins):
        app = FastAPI()
        setup_cors(app, Settings(cors_origins=origins))
        assert _cors_options(app)["allow_credentials"] is False
