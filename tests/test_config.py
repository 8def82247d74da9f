from __future__ import annotations

from pytest import MonkeyPatch, raises

from pricealert.config import DEFAULT_EMAIL_FROM, Settings, flag


def test_defaults(monkeypatch: MonkeyPatch) -> None:
    for name in ("RULE_COOLDOWN_MINUTES", "EVALUATION_INTERVAL_SECONDS", "RESEND_API_KEY", "EMAIL_FROM"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.cooldown_minutes == 60
    assert settings.evaluation_interval_seconds == 900
    assert settings.resend_api_key is None
    assert settings.email_from == DEFAULT_EMAIL_FROM


def test_overrides(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("RULE_COOLDOWN_MINUTES", "15")
    monkeypatch.setenv("EVALUATION_INTERVAL_SECONDS", "300")
    monkeypatch.setenv("RESEND_API_KEY", "re_123")
    settings = Settings.from_env()
    assert settings.cooldown_minutes == 15
    assert settings.evaluation_interval_seconds == 300
    assert settings.resend_api_key == "re_123"


def test_invalid_values(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("RULE_COOLDOWN_MINUTES", "soon")
    with raises(ValueError):
        Settings.from_env()
    monkeypatch.setenv("RULE_COOLDOWN_MINUTES", "-5")
    with raises(ValueError):
        Settings.from_env()


def test_flag(monkeypatch: MonkeyPatch) -> None:
    monkeypatch.setenv("SOME_FLAG", "Yes")
    assert flag("SOME_FLAG") is True
    monkeypatch.setenv("SOME_FLAG", "0")
    assert flag("SOME_FLAG") is False
    monkeypatch.delenv("SOME_FLAG")
    assert flag("SOME_FLAG", default=True) is True
