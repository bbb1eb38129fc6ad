"""Tests for the sreq exception hierarchy."""

import pytest

from sreq.enums import ErrorKind
from sreq.exceptions import (
    ConfigError,
    EncryptionError,
    NetworkError,
    NotFoundError,
    PathResolutionFailed,
    ProviderError,
    SreqError,
    ValidationError,
    deadline_exceeded,
    path_resolution_failed,
    provider_init_failed,
    secret_not_found,
    service_not_found,
)


class TestSreqError:
    """Test base exception formatting."""

    def test_message_only(self):
        """Test an error with only a message."""
        error = SreqError("Something failed")

        assert str(error) == "Something failed"
        assert error.cause is None
        assert error.suggestion is None

    def test_cause_and_suggestion_rendered(self):
        """Test cause and suggestion are appended to the message."""
        cause = RuntimeError("boom")
        error = SreqError("Something failed", cause=cause, suggestion="Try again")

        assert str(error) == "Something failed\n  Cause: boom\n  Suggestion: Try again"
        assert error.__cause__ is cause

    @pytest.mark.parametrize(
        ("error_class", "kind"),
        [
            (ConfigError, ErrorKind.CONFIG),
            (NotFoundError, ErrorKind.NOT_FOUND),
            (ProviderError, ErrorKind.PROVIDER),
            (ValidationError, ErrorKind.VALIDATION),
            (NetworkError, ErrorKind.NETWORK),
            (EncryptionError, ErrorKind.ENCRYPTION),
        ],
    )
    def test_kinds(self, error_class, kind):
        """Test every error class carries its kind."""
        error = error_class("x")

        assert error.kind == kind
        assert isinstance(error, SreqError)


class TestErrorConstructors:
    """Test named error constructors."""

    def test_service_not_found(self):
        """Test service lookup failure."""
        error = service_not_found("billing")

        assert isinstance(error, NotFoundError)
        assert "billing" in error.message
        assert error.suggestion

    def test_secret_not_found_keeps_cause(self):
        """Test secret lookup failure chains its cause."""
        cause = KeyError("x")
        error = secret_not_found("consul", "services/a", cause=cause)

        assert error.message == "Secret 'services/a' not found in consul"
        assert error.cause is cause

    def test_path_resolution_failed(self):
        """Test advanced-mode failure carries the field name."""
        cause = secret_not_found("aws", "billing/dev")
        error = path_resolution_failed("password", cause)

        assert isinstance(error, PathResolutionFailed)
        assert isinstance(error, ProviderError)
        assert error.field == "password"
        assert error.cause is cause

    def test_provider_init_failed(self):
        """Test provider construction failure."""
        error = provider_init_failed("Consul", ConfigError("Consul address is required"))

        assert error.message == "Failed to initialize Consul provider"
        assert "Consul address is required" in str(error)

    def test_deadline_exceeded(self):
        """Test deadline errors are network errors."""
        error = deadline_exceeded("Resolving credentials for 'billing'", 2.5)

        assert isinstance(error, NetworkError)
        assert error.message == "Resolving credentials for 'billing' timed out after 2.5s"
