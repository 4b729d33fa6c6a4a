"""Tests for service settings.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from quiz_intake.core.settings import ServiceSettings

if TYPE_CHECKING:
    from tests.conftest import TestEnv

__all__ = ()

_ENV_NAMES = (
    "MONGODB_URI",
    "PORT",
    "ENVIRONMENT",
    "SUBMISSION_PROFILE",
    "METRIC_FIELD",
    "CORS_ORIGINS",
    "CORS_ALLOW_ALL",
    "ADMIN_TOKEN",
)


@pytest.fixture
def clean_env(env: TestEnv) -> TestEnv:
    for name in _ENV_NAMES:
        env.remove(name)
    return env


class TestServiceSettings:
    """Tests for environment-driven configuration."""

    def test_defaults(self, clean_env: TestEnv) -> None:
        settings = ServiceSettings(_env_file=None)

        assert settings.mongodb_uri is None
        assert settings.port == 5000
        assert settings.database_name == "quiz"
        assert settings.collection_name == "users"
        assert settings.submission_profile == "A"
        assert settings.profile.metric_field == "score"
        assert settings.cors_origins == ["http://localhost:5173", "http://localhost:3000"]
        assert settings.admin_token is None
        assert settings.is_production is False

    def test_reads_environment(self, clean_env: TestEnv) -> None:
        clean_env.set("MONGODB_URI", "mongodb://db.example.org:27017")
        clean_env.set("PORT", "8080")
        clean_env.set("ENVIRONMENT", "Production")
        clean_env.set("ADMIN_TOKEN", "s3cret")

        settings = ServiceSettings(_env_file=None)

        assert settings.mongodb_uri == "mongodb://db.example.org:27017"
        assert settings.port == 8080
        assert settings.is_production is True
        assert settings.admin_token is not None
        assert settings.admin_token.get_secret_value() == "s3cret"

    def test_profile_is_case_insensitive(self, clean_env: TestEnv) -> None:
        clean_env.set("SUBMISSION_PROFILE", "b")

        settings = ServiceSettings(_env_file=None)

        assert settings.submission_profile == "B"
        assert settings.profile.metric_field == "completionTime"

    def test_metric_field_override(self, clean_env: TestEnv) -> None:
        clean_env.set("METRIC_FIELD", "completionTime")

        assert ServiceSettings(_env_file=None).profile.metric_field == "completionTime"

    def test_unknown_profile_rejected(self, clean_env: TestEnv) -> None:
        clean_env.set("SUBMISSION_PROFILE", "Z")

        with pytest.raises(ValidationError):
            ServiceSettings(_env_file=None)

    def test_comma_separated_origins(self, clean_env: TestEnv) -> None:
        clean_env.set("CORS_ORIGINS", "https://quiz.example.org, https://admin.example.org ,")

        settings = ServiceSettings(_env_file=None)

        assert settings.cors_origins == ["https://quiz.example.org", "https://admin.example.org"]

    def test_blank_values_are_unset(self, clean_env: TestEnv) -> None:
        clean_env.set("MONGODB_URI", "  ")
        clean_env.set("ADMIN_TOKEN", "")

        settings = ServiceSettings(_env_file=None)

        assert settings.mongodb_uri is None
        assert settings.admin_token is None

    def test_invalid_port(self, clean_env: TestEnv) -> None:
        clean_env.set("PORT", "0")

        with pytest.raises(ValidationError):
            ServiceSettings(_env_file=None)

    def test_keyword_overrides(self, clean_env: TestEnv) -> None:
        settings = ServiceSettings(_env_file=None, mongodb_uri="memory://quiz", cors_allow_all=True)

        assert settings.mongodb_uri == "memory://quiz"
        assert settings.cors_allow_all is True
