"""Tests for pydantic-settings configuration."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from cardcutter.config import (
    ExportConfig,
    Settings,
    get_settings,
    normalise_hex_colour,
)


class TestNormaliseHexColour:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("#00ff00", "#00FF00"),
            ("ffff00", "#FFFF00"),
            ("  #AbCdEf ", "#ABCDEF"),
        ],
    )
    def test_accepted(self, raw: str, expected: str) -> None:
        assert normalise_hex_colour(raw) == expected

    @pytest.mark.parametrize("raw", ["", "#fff", "#GGGGGG", "green", "#00ff00ff"])
    def test_rejected(self, raw: str) -> None:
        with pytest.raises(ValueError, match="#RRGGBB"):
            normalise_hex_colour(raw)


class TestDefaults:
    def test_export_defaults(self, settings: Settings) -> None:
        assert settings.export.default_highlight_color == "#00FF00"
        assert settings.export.page_margin_pt == 72.0
        assert settings.export.card_spacing_lines == 3

    def test_app_defaults(self, settings: Settings) -> None:
        assert settings.app.undo_window_seconds == 5.0
        assert settings.app.store_path == Path("cards.json")

    def test_api_key_empty_by_default(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("LLM__API_KEY", raising=False)
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.llm.api_key.get_secret_value() == ""


class TestEnvironmentOverrides:
    """Nested values come from ``SECTION__FIELD`` variables."""

    def test_highlight_colour_normalised(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EXPORT__DEFAULT_HIGHLIGHT_COLOR", "ffff00")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.export.default_highlight_color == "#FFFF00"

    def test_invalid_colour_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXPORT__DEFAULT_HIGHLIGHT_COLOR", "yellow")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_undo_window(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP__UNDO_WINDOW_SECONDS", "2.5")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app.undo_window_seconds == 2.5

    def test_api_key_is_secret(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LLM__API_KEY", "sk-test-123")
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.llm.api_key.get_secret_value() == "sk-test-123"
        assert "sk-test-123" not in repr(s)

    def test_env_file_is_read(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("LLM__MODEL", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("LLM__MODEL=claude-test\n", encoding="utf-8")
        s = Settings(_env_file=env_file)  # type: ignore[call-arg]
        assert s.llm.model == "claude-test"


class TestSubModels:
    def test_export_config_direct(self) -> None:
        cfg = ExportConfig(default_highlight_color="#ff00ff", page_margin_pt=36)
        assert cfg.default_highlight_color == "#FF00FF"
        assert cfg.page_margin_pt == 36.0


class TestGetSettings:
    def test_cached(self) -> None:
        assert get_settings() is get_settings()

    def test_cache_clear_rereads_environment(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        first = get_settings()
        monkeypatch.setenv("APP__UNDO_WINDOW_SECONDS", "9")
        get_settings.cache_clear()
        second = get_settings()
        assert second is not first
        assert second.app.undo_window_seconds == 9.0
