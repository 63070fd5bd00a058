"""Unit tests for core/config.py."""

from __future__ import annotations

import pytest

from core.config import Settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.session_ttl_seconds == 3600
    assert s.bcrypt_rounds == 12
    assert s.rate_limit_capacity == 4
    assert s.rate_limit_refill_per_second == 2.0
    assert s.auth_rpc_timeout == 1.0
    assert s.store_ping_timeout == 5.0
    assert s.trusted_proxies == []


def test_env_override(monkeypatch):
    monkeypatch.setenv("BCRYPT_ROUNDS", "10")
    monkeypatch.setenv("ACCOUNT_SERVICE_URL", "http://account:9000")
    monkeypatch.setenv("TRUSTED_PROXIES", '["10.0.0.0/8"]')
    s = Settings(_env_file=None)
    assert s.bcrypt_rounds == 10
    assert s.account_service_url == "http://account:9000"
    assert s.trusted_proxies == ["10.0.0.0/8"]


@pytest.mark.parametrize(
    "overrides",
    [
        {"bcrypt_rounds": 3},
        {"bcrypt_rounds": 32},
        {"session_ttl_seconds": 0},
        {"auth_rpc_timeout": 0},
        {"store_ping_timeout": -1},
        {"rate_limit_capacity": 0},
        {"rate_limit_refill_per_second": 0},
        {"rate_limit_sweep_interval": 0},
    ],
)
def test_out_of_range_values_fail_at_startup(overrides):
    with pytest.raises(ValueError):
        Settings(_env_file=None, **overrides)
