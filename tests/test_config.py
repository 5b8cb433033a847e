from __future__ import annotations

import pytest

from pybookvault.config import VaultConfig
from pybookvault.exceptions import VaultConfigError


def test_defaults_target_local_server() -> None:
    config = VaultConfig()

    assert config.endpoint == "http://localhost:4000/graphql"
    assert config.query_name == "books"
    assert config.api_trace_enabled is False


def test_from_env_reads_vault_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VAULT_ENDPOINT", "https://books.example.com/graphql")
    monkeypatch.setenv("VAULT_AUTH_TOKEN", "tok")
    monkeypatch.setenv("VAULT_REQUEST_TIMEOUT", "5")
    monkeypatch.setenv("VAULT_API_TRACE_ENABLED", "yes")

    config = VaultConfig.from_env()

    assert config.endpoint == "https://books.example.com/graphql"
    assert config.auth_token == "tok"
    assert config.request_timeout == 5.0
    assert config.api_trace_enabled is True


def test_explicit_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VAULT_REQUEST_TIMEOUT", "5")
    monkeypatch.setenv("VAULT_API_TRACE_ENABLED", "1")

    config = VaultConfig.from_env(request_timeout=12.5, api_trace_enabled=False, query_name="library")

    assert config.request_timeout == 12.5
    assert config.api_trace_enabled is False
    assert config.query_name == "library"


def test_invalid_timeout_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("VAULT_REQUEST_TIMEOUT", "soon")

    with pytest.raises(VaultConfigError):
        VaultConfig.from_env()


def test_non_positive_timeout_rejected() -> None:
    with pytest.raises(VaultConfigError):
        VaultConfig(request_timeout=0)
