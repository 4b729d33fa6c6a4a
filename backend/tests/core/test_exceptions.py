"""Tests for core exceptions.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

import pytest

from quiz_intake.core.exceptions import (
    AdminAccessError,
    ClientRequestError,
    ConfigurationError,
    DatabaseConnectionError,
    QuizIntakeError,
    RouteNotFoundError,
    StoreError,
    StoreTimeoutError,
    SubmissionValidationError,
    classify_connection_failure,
    classify_error,
)

__all__ = ()


class TestQuizIntakeError:
    """Tests for the base QuizIntakeError."""

    def test_basic_creation(self) -> None:
        """Error should be created with message."""
        error = QuizIntakeError("Test error")

        assert str(error) == "Test error"
        assert error.context == {}
        assert error.recoverable is True

    def test_inheritance(self) -> None:
        """Should inherit from Exception."""
        assert isinstance(QuizIntakeError("Test"), Exception)


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_names_missing_setting(self) -> None:
        error = ConfigurationError("MONGODB_URI")

        assert str(error) == "MONGODB_URI environment variable is required"
        assert error.setting == "MONGODB_URI"
        assert error.recoverable is False

    def test_custom_message(self) -> None:
        error = ConfigurationError("ADMIN_TOKEN", "ADMIN_TOKEN must not be empty")

        assert str(error) == "ADMIN_TOKEN must not be empty"


class TestDatabaseConnectionError:
    """Tests for DatabaseConnectionError."""

    def test_message_carries_kind(self) -> None:
        cause = OSError("connection refused")
        error = DatabaseConnectionError("network", "connection refused", cause=cause)

        assert str(error) == "[network] connection refused"
        assert error.kind == "network"
        assert error.cause is cause
        assert error.context == {"kind": "network", "cause_type": "OSError"}


class TestSubmissionValidationError:
    """Tests for SubmissionValidationError."""

    def test_lists_every_missing_field(self) -> None:
        error = SubmissionValidationError(["email", "school"], required=("name", "email", "school"))

        assert "email, school" in str(error)
        assert error.missing == ["email", "school"]
        assert error.invalid == []
        assert error.required == ("name", "email", "school")

    def test_invalid_fields(self) -> None:
        error = SubmissionValidationError([], invalid=["answers"])

        assert "invalid: answers" in str(error)
        assert "missing" not in str(error)


class TestStoreError:
    """Tests for StoreError and StoreTimeoutError."""

    def test_creation(self) -> None:
        error = StoreError("insert", "duplicate key", cause=ValueError("dup"))

        assert str(error) == "Store insert failed: duplicate key"
        assert error.operation == "insert"
        assert error.context["cause_type"] == "ValueError"

    def test_timeout_is_store_error(self) -> None:
        assert isinstance(StoreTimeoutError("list", "timed out"), StoreError)


class TestHttpErrors:
    """Tests for route, admin and client errors."""

    def test_route_not_found(self) -> None:
        error = RouteNotFoundError("/nope?x=1")

        assert error.path == "/nope?x=1"
        assert "/nope?x=1" in str(error)

    def test_admin_access_default_status(self) -> None:
        assert AdminAccessError("denied").status_code == 403

    def test_client_request_error(self) -> None:
        error = ClientRequestError("Server error.", status_code=500, payload={"success": False})

        assert error.status_code == 500
        assert error.payload == {"success": False}


class TestClassifyConnectionFailure:
    """Tests for connection failure classification."""

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (Exception("bad auth : Authentication failed."), "authentication"),
            (Exception("401 Unauthorized"), "authentication"),
            (TimeoutError(), "timeout"),
            (Exception("operation timed out after 10000ms"), "timeout"),
            (ConnectionRefusedError("connection refused"), "network"),
            (Exception("something else"), "network"),
        ],
    )
    def test_kinds(self, exc: Exception, expected: str) -> None:
        assert classify_connection_failure(exc) == expected

    def test_keeps_kind_of_connection_error(self) -> None:
        assert classify_connection_failure(DatabaseConnectionError("timeout", "slow")) == "timeout"


class TestClassifyError:
    """Tests for error recovery classification."""

    def test_configuration_is_fatal(self) -> None:
        assert classify_error(ConfigurationError("MONGODB_URI")) == ("fatal", "abort")

    def test_connection_errors_retry(self) -> None:
        assert classify_error(DatabaseConnectionError("network", "down")) == ("transient", "retry")
        assert classify_error(DatabaseConnectionError("authentication", "bad")) == ("recoverable", "retry")

    def test_store_errors_retry(self) -> None:
        assert classify_error(StoreError("insert", "write failed")) == ("transient", "retry")
        assert classify_error(StoreTimeoutError("list", "slow")) == ("transient", "retry")

    def test_request_errors_reject(self) -> None:
        assert classify_error(SubmissionValidationError(["name"])) == ("recoverable", "reject")
        assert classify_error(AdminAccessError("denied")) == ("recoverable", "reject")

    def test_unknown_errors_retry(self) -> None:
        assert classify_error(RuntimeError("boom")) == ("transient", "retry")
