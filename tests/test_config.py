"""
Tests for client settings.
"""
import pytest
from pydantic import ValidationError

from routing_client import __version__
from routing_client.core.config import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        cfg = Settings(_env_file=None)
        assert cfg.DEFAULT_USER_AGENT == f"routing-client-python/{__version__}"
        assert cfg.DEFAULT_TIMEOUT == 10.0
        assert cfg.DEFAULT_MAX_RETRIES == 5
        assert cfg.DEFAULT_RETRY_OVER_QUERY_LIMIT is False

    def test_default_headers(self):
        cfg = Settings(_env_file=None)
        assert cfg.default_headers() == {
            "User-Agent": cfg.DEFAULT_USER_AGENT,
            "Content-Type": "application/json",
        }

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("ROUTING_CLIENT_DEFAULT_TIMEOUT", "2.5")
        monkeypatch.setenv("ROUTING_CLIENT_DEFAULT_RETRY_OVER_QUERY_LIMIT", "true")
        cfg = Settings(_env_file=None)
        assert cfg.DEFAULT_TIMEOUT == 2.5
        assert cfg.DEFAULT_RETRY_OVER_QUERY_LIMIT is True

    @pytest.mark.parametrize(
        "field,value",
        [
            ("DEFAULT_TIMEOUT", 0),
            ("DEFAULT_MAX_RETRIES", -1),
            ("RETRY_BACKOFF_BASE", -0.5),
        ],
    )
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})
