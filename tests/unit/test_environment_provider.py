"""Tests for the environment variable provider."""

import pytest

from sreq.exceptions import NotFoundError
from sreq.providers.environment import EnvironmentProvider


class TestEnvironmentProvider:
    """Test EnvironmentProvider functionality."""

    def test_provider_name(self):
        """Test provider name."""
        assert EnvironmentProvider().name == "env"

    def test_get_upper_cases_key(self, monkeypatch):
        """Test keys are upper-cased before lookup."""
        monkeypatch.setenv("BILLING_API_KEY", "abc123")

        assert EnvironmentProvider().get("billing_api_key") == "abc123"

    def test_prefix_prepended(self, monkeypatch):
        """Test the prefix is added when missing."""
        monkeypatch.setenv("SREQ_AUTH_API_KEY", "abc123")

        assert EnvironmentProvider(prefix="SREQ_").get("auth_api_key") == "abc123"

    def test_prefix_not_duplicated(self, monkeypatch):
        """Test a key already carrying the prefix is used as-is."""
        monkeypatch.setenv("SREQ_AUTH_API_KEY", "abc123")

        assert EnvironmentProvider(prefix="SREQ_").get("sreq_auth_api_key") == "abc123"

    def test_unset_variable(self, monkeypatch):
        """Test an unset variable is a NotFoundError."""
        monkeypatch.delenv("MISSING_VAR", raising=False)

        with pytest.raises(NotFoundError) as exc_info:
            EnvironmentProvider().get("missing_var")

        assert "export MISSING_VAR" in exc_info.value.suggestion

    def test_empty_variable(self, monkeypatch):
        """Test an empty variable counts as unset."""
        monkeypatch.setenv("EMPTY_VAR", "")

        with pytest.raises(NotFoundError):
            EnvironmentProvider().get("EMPTY_VAR")

    def test_health_always_ok(self):
        """Test the environment is always available."""
        assert EnvironmentProvider().health() is None

    def test_resolve_template_folds_identifiers(self):
        """Test templates are resolved with identifier folding."""
        provider = EnvironmentProvider()

        result = provider.resolve_template("{SERVICE}_{ENV}_PASSWORD", {"service": "auth-svc", "env": "dev"})

        assert result == "AUTH_SVC_DEV_PASSWORD"
