from __future__ import annotations

from webstore.config import Settings


def test_message_delay_accepts_fractions(monkeypatch) -> None:
    monkeypatch.setenv("WEBSTORE_MESSAGE_SECONDS", "2.5")
    assert Settings.from_env().message_seconds == 2.5


def test_bad_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("WEBSTORE_MESSAGE_SECONDS", "soon")
    monkeypatch.setenv("WEBSTORE_TIMEOUT", "")
    settings = Settings.from_env()
    assert settings.message_seconds == 5.0
    assert settings.timeout == 30.0


def test_empty_http_log_disables_logging(monkeypatch) -> None:
    monkeypatch.setenv("WEBSTORE_HTTP_LOG", "")
    assert Settings.from_env().http_log_path is None
