"""
Tests for environment-driven settings and startup client construction.
"""

import json
import os
from unittest.mock import patch

from app.config import (
    DEFAULT_BREVO_API_URL,
    DEFAULT_TIMEOUT_SECONDS,
    TRIGGER_REQUEST,
    TRIGGER_STORE,
    Settings,
)
from app.db import create_store_client
from app.dependencies import get_coordinator, get_notifier, get_store

_CONFIG_VARS = [
    "BREVO_API_KEY",
    "SENDINBLUE_API_KEY",
    "BREVO_API_URL",
    "SUPABASE_URL",
    "SUPABASE_SERVICE_KEY",
    "SUPABASE_CREDENTIALS",
    "SUBMISSIONS_TABLE",
    "NOTIFY_SENDER_EMAIL",
    "NOTIFY_SENDER_NAME",
    "NOTIFY_RECIPIENT_EMAIL",
    "NOTIFY_RECIPIENT_NAME",
    "STORE_TIMEOUT_SECONDS",
    "NOTIFICATION_TIMEOUT_SECONDS",
    "NOTIFICATION_TRIGGER",
    "CHANGE_WEBHOOK_SECRET",
    "CORS_ORIGINS",
]


def _settings_from(env: dict) -> Settings:
    """Build Settings from exactly the given config variables."""
    with patch.dict(os.environ, env):
        for name in _CONFIG_VARS:
            if name not in env:
                os.environ.pop(name, None)
        return Settings.from_env()


class TestSettingsFromEnv:
    def test_defaults_when_nothing_is_set(self):
        settings = _settings_from({})

        assert settings.brevo_api_key is None
        assert settings.brevo_api_url == DEFAULT_BREVO_API_URL
        assert settings.submissions_table == "contact_submissions"
        assert settings.store_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert settings.notification_trigger == TRIGGER_REQUEST
        assert settings.notify_inline
        assert settings.cors_origins == []

    def test_reads_all_values(self):
        settings = _settings_from({
            "BREVO_API_KEY": "xkeysib-abc",
            "SUPABASE_URL": "https://proj.supabase.co",
            "SUPABASE_SERVICE_KEY": "service-key",
            "SUBMISSIONS_TABLE": "messages",
            "NOTIFY_SENDER_EMAIL": "contact@portfolio.example.com",
            "NOTIFY_RECIPIENT_EMAIL": "owner@portfolio.example.com",
            "STORE_TIMEOUT_SECONDS": "2.5",
            "NOTIFICATION_TIMEOUT_SECONDS": "4",
            "NOTIFICATION_TRIGGER": "STORE",
            "CHANGE_WEBHOOK_SECRET": "s3cret",
            "CORS_ORIGINS": "https://a.example.com, https://b.example.com,",
        })

        assert settings.brevo_api_key == "xkeysib-abc"
        assert settings.supabase_url == "https://proj.supabase.co"
        assert settings.supabase_service_key == "service-key"
        assert settings.submissions_table == "messages"
        assert settings.store_timeout_seconds == 2.5
        assert settings.notification_timeout_seconds == 4.0
        assert settings.notification_trigger == TRIGGER_STORE
        assert not settings.notify_inline
        assert settings.change_webhook_secret == "s3cret"
        assert settings.cors_origins == ["https://a.example.com", "https://b.example.com"]

    def test_legacy_sendinblue_key_is_accepted(self):
        settings = _settings_from({"SENDINBLUE_API_KEY": "legacy-key"})
        assert settings.brevo_api_key == "legacy-key"

    def test_brevo_key_wins_over_legacy_key(self):
        settings = _settings_from({"BREVO_API_KEY": "new", "SENDINBLUE_API_KEY": "old"})
        assert settings.brevo_api_key == "new"

    def test_invalid_timeouts_fall_back_to_default(self):
        settings = _settings_from({
            "STORE_TIMEOUT_SECONDS": "soon",
            "NOTIFICATION_TIMEOUT_SECONDS": "-1",
        })
        assert settings.store_timeout_seconds == DEFAULT_TIMEOUT_SECONDS
        assert settings.notification_timeout_seconds == DEFAULT_TIMEOUT_SECONDS

    def test_unknown_trigger_falls_back_to_request(self):
        settings = _settings_from({"NOTIFICATION_TRIGGER": "both"})
        assert settings.notification_trigger == TRIGGER_REQUEST


class TestSupabaseCredentialsBlob:
    def test_blob_takes_precedence(self):
        blob = json.dumps({"url": "https://blob.supabase.co", "service_key": "blob-key"})
        settings = _settings_from({
            "SUPABASE_CREDENTIALS": blob,
            "SUPABASE_URL": "https://env.supabase.co",
            "SUPABASE_SERVICE_KEY": "env-key",
        })

        assert settings.supabase_url == "https://blob.supabase.co"
        assert settings.supabase_service_key == "blob-key"

    def test_malformed_blob_leaves_store_unconfigured(self):
        settings = _settings_from({
            "SUPABASE_CREDENTIALS": "{not json",
            "SUPABASE_URL": "https://env.supabase.co",
            "SUPABASE_SERVICE_KEY": "env-key",
        })
        assert settings.supabase_url is None
        assert settings.supabase_service_key is None

    def test_blob_missing_key_leaves_store_unconfigured(self):
        settings = _settings_from({"SUPABASE_CREDENTIALS": json.dumps({"url": "https://x.supabase.co"})})
        assert settings.supabase_url is None

    def test_non_object_blob_leaves_store_unconfigured(self):
        settings = _settings_from({"SUPABASE_CREDENTIALS": json.dumps(["a", "b"])})
        assert settings.supabase_url is None


class TestCreateStoreClient:
    def test_missing_credentials_return_none(self):
        with patch("app.db.create_client") as mock_create:
            assert create_store_client(Settings()) is None
            mock_create.assert_not_called()

    def test_construction_error_is_captured(self):
        settings = Settings(supabase_url="not-a-url", supabase_service_key="bad")
        with patch("app.db.create_client", side_effect=Exception("Invalid URL")):
            assert create_store_client(settings) is None

    def test_returns_client_when_configured(self):
        settings = Settings(supabase_url="https://proj.supabase.co", supabase_service_key="key")
        with patch("app.db.create_client") as mock_create:
            client = create_store_client(settings)

        mock_create.assert_called_once_with("https://proj.supabase.co", "key")
        assert client is mock_create.return_value


class TestSharedDependencies:
    def test_coordinator_is_built_once_with_unavailable_clients(self, mocker):
        mocker.patch("app.dependencies.get_settings", return_value=Settings())
        mock_create = mocker.patch("app.db.create_client")
        get_store.cache_clear()
        get_notifier.cache_clear()
        get_coordinator.cache_clear()
        try:
            first = get_coordinator()
            second = get_coordinator()

            assert first is second
            assert not first.store_available
            assert not first.notifier_available
            mock_create.assert_not_called()
        finally:
            get_store.cache_clear()
            get_notifier.cache_clear()
            get_coordinator.cache_clear()
