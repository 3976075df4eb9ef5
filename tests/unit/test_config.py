"""Tests for sfconnector.config module."""

import os
from unittest.mock import patch

from sfconnector.config import MAX_BATCH_SIZE, SFConfig


class TestSFConfig:
    def test_default_values(self):
        cfg = SFConfig()

        assert cfg.username is None
        assert cfg.password is None
        assert cfg.api_version == "48.0"
        assert cfg.is_production is True
        assert cfg.all_or_none is False
        assert cfg.chunk_size == MAX_BATCH_SIZE

    def test_from_env(self):
        env = {
            "SF_USERNAME": "user@example.com",
            "SF_PASSWORD": "pw",
            "SF_API_VERSION": "v60.0",
            "SF_IS_PRODUCTION": "false",
            "SF_ALL_OR_NONE": "yes",
            "SF_BATCH_SIZE": "50",
            "SF_TIMEOUT": "12.5",
        }

        with patch.dict(os.environ, env, clear=False):
            cfg = SFConfig.from_env()

        assert cfg.username == "user@example.com"
        assert cfg.password == "pw"
        assert cfg.api_version == "60.0"
        assert cfg.is_production is False
        assert cfg.all_or_none is True
        assert cfg.chunk_size == 50
        assert cfg.timeout == 12.5

    def test_from_env_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            cfg = SFConfig.from_env()

        assert cfg.api_version == "48.0"
        assert cfg.is_production is True
        assert cfg.login_endpoint == "https://login.salesforce.com/services/Soap/c/48.0/"

    def test_invalid_values_fall_back(self, monkeypatch, caplog):
        monkeypatch.setenv("SF_IS_PRODUCTION", "maybe")
        monkeypatch.setenv("SF_BATCH_SIZE", "lots")

        cfg = SFConfig.from_env()

        assert cfg.is_production is True
        assert cfg.batch_size == MAX_BATCH_SIZE
        assert "SF_BATCH_SIZE" in caplog.text


class TestEndpoints:
    def test_production(self):
        cfg = SFConfig(api_version="52.0")

        assert cfg.login_endpoint == "https://login.salesforce.com/services/Soap/c/52.0/"
        assert cfg.logout_endpoint == "https://login.salesforce.com/services/oauth2/revoke?token="

    def test_sandbox(self):
        cfg = SFConfig(is_production=False)

        assert cfg.login_endpoint.startswith("https://test.salesforce.com/")
        assert cfg.logout_endpoint.startswith("https://test.salesforce.com/")

    def test_explicit_overrides(self):
        cfg = SFConfig(
            login_url="https://mydomain.my.salesforce.com/services/Soap/c/48.0/",
            logout_url="https://mydomain.my.salesforce.com/services/oauth2/revoke?token=",
        )

        assert cfg.login_endpoint.startswith("https://mydomain.")
        assert cfg.logout_endpoint.startswith("https://mydomain.")


def test_chunk_size_is_capped():
    assert SFConfig(batch_size=500).chunk_size == MAX_BATCH_SIZE
    assert SFConfig(batch_size=0).chunk_size == MAX_BATCH_SIZE
    assert SFConfig(batch_size=25).chunk_size == 25
