"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from enablement.config import Settings, load_settings
from enablement.render import DEFAULT_CANVAS_SIZE, DEFAULT_PLACEHOLDER_URL


def test_defaults_from_empty_environment() -> None:
    settings = load_settings(env={})

    assert settings == Settings()
    assert settings.store_dir is None
    assert settings.renderer == "vector"
    assert settings.placeholder_url == DEFAULT_PLACEHOLDER_URL
    assert settings.canvas_size == DEFAULT_CANVAS_SIZE
    assert settings.log_level == "INFO"


def test_environment_overrides() -> None:
    settings = load_settings(
        env={
            "ENABLEMENT_RENDERER": "Placeholder",
            "ENABLEMENT_STORE_DIR": ".enablement",
            "ENABLEMENT_CANVAS_WIDTH": "1024",
            "ENABLEMENT_CANVAS_HEIGHT": "768",
            "ENABLEMENT_PLACEHOLDER_URL": "https://img.example.com",
            "ENABLEMENT_FONT_PATH": "/fonts/Inter.ttf",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.renderer == "placeholder"
    assert settings.store_dir == Path(".enablement")
    assert settings.canvas_size == (1024, 768)
    assert settings.placeholder_url == "https://img.example.com"
    assert settings.font_path == "/fonts/Inter.ttf"
    assert settings.log_level == "DEBUG"


def test_unknown_renderer_is_rejected() -> None:
    with pytest.raises(ValueError):
        load_settings(env={"ENABLEMENT_RENDERER": "dalle"})


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("ENABLEMENT_RENDERER", "generative")

    assert load_settings(use_dotenv=False).renderer == "generative"
