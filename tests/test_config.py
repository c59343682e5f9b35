"""Runtime settings."""

from __future__ import annotations

import pytest

from htlc_spec.config import DEFAULT_LIST_LIMIT, MAX_LIST_LIMIT, MIN_SWAP_AMOUNT, HtlcSettings


def test_defaults(monkeypatch) -> None:
    for name in ("HTLC_MIN_AMOUNT", "HTLC_MAX_LIST_LIMIT", "HTLC_DEFAULT_LIST_LIMIT", "HTLC_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    settings = HtlcSettings.from_env()
    assert settings.min_amount == MIN_SWAP_AMOUNT
    assert settings.max_list_limit == MAX_LIST_LIMIT
    assert settings.default_list_limit == DEFAULT_LIST_LIMIT
    assert settings.log_level == "INFO"


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("HTLC_MIN_AMOUNT", "1")
    monkeypatch.setenv("HTLC_MAX_LIST_LIMIT", "10")
    monkeypatch.setenv("HTLC_DEFAULT_LIST_LIMIT", "50")
    monkeypatch.setenv("HTLC_LOG_LEVEL", "debug")
    settings = HtlcSettings.from_env()
    assert settings.min_amount == 1
    assert settings.max_list_limit == 10
    # the default page never exceeds the cap
    assert settings.default_list_limit == 10
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("field", ["min_amount", "max_list_limit"])
def test_rejects_non_positive(field) -> None:
    with pytest.raises(ValueError):
        HtlcSettings(**{field: 0})
