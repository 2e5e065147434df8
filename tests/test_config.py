"""Test configuration loading."""

import pytest

from peel_n_edit.utils.config import Config, load_config
from peel_n_edit.utils.errors import ConfigurationError


@pytest.fixture
def api_keys(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "gemini-key")
    monkeypatch.setenv("FAL_KEY", "fal-key")


def test_load_config_merges_env_and_yaml(tmp_path, api_keys, monkeypatch):
    monkeypatch.setenv("TIMEOUT_GEMINI_SECONDS", "30")
    models_path = tmp_path / "models.yaml"
    models_path.write_text(
        "models:\n"
        "  sequential_edit: custom-edit\n"
        "  single_shot: fal-ai/custom\n"
    )

    config = load_config(models_path)

    assert config.gemini_api_key == "gemini-key"
    assert config.fal_key == "fal-key"
    assert config.timeout_gemini_seconds == 30.0
    assert config.models.sequential_edit == "custom-edit"
    assert config.models.single_shot == "fal-ai/custom"
    assert config.models.suggestions == "gemini-2.5-flash"
    assert config.max_attempts_per_call == 1


def test_bundled_models_file_is_loaded(api_keys):
    config = load_config()

    assert config.models.single_shot == "fal-ai/flux-pro/kontext/max"
    assert config.models.sequential_edit == "gemini-2.5-flash-image-preview"


def test_missing_api_keys_fail(tmp_path, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("FAL_KEY", raising=False)
    models_path = tmp_path / "models.yaml"
    models_path.write_text("models: {}\n")

    with pytest.raises(ConfigurationError):
        load_config(models_path)


def test_explicit_missing_models_file_fails(tmp_path, api_keys):
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "missing.yaml")


def test_config_accepts_field_names():
    config = Config(gemini_api_key="g", fal_key="f", max_attempts_per_call=3)

    assert config.max_attempts_per_call == 3
    assert config.preview_max_side == 256
    assert config.session_ttl_seconds == 3600.0
