# tests/unit/test_config.py
"""
Tests for settings parsing.
"""

import pytest

from servicehub.core.config import Settings

SECRET = "a-sufficiently-long-secret-key-for-tests-123"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
        ('["https://a.example"]', ["https://a.example"]),
        ("", []),
    ],
)
def test_cors_origins_from_env(monkeypatch, raw, expected):
    monkeypatch.setenv("CORS_ORIGINS", raw)

    assert Settings(secret_key=SECRET).cors_origins == expected


def test_short_secret_rejected_outside_tests():
    with pytest.raises(ValueError):
        Settings(secret_key="short", is_testing=False)


def test_default_secret_rejected_in_production():
    with pytest.raises(ValueError):
        Settings(
            environment="production",
            is_testing=True,
            secret_key="servicehub-local-development-secret-key-change-me",
        )


def test_currency_normalized():
    assert Settings(secret_key=SECRET, stripe_currency=" USD ").stripe_currency == "usd"


def test_broadcast_url_falls_back():
    assert Settings(secret_key=SECRET, is_testing=True, broadcast_url="").effective_broadcast_url == "memory://"
    assert (
        Settings(secret_key=SECRET, is_testing=False, broadcast_url="", redis_url="redis://cache:6379")
        .effective_broadcast_url
        == "redis://cache:6379"
    )
