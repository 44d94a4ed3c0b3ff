import pytest
from pydantic import ValidationError

from labeler_service.config import Settings, get_settings
from labeler_service.pipeline import PipelineOptions


def test_defaults():
    settings = Settings()
    assert settings.label_text == "This is watermark"
    assert tuple(settings.label_color) == (255, 0, 0, 255)
    assert settings.output_prefix == "labeled-images/"
    assert settings.max_workers == 8
    assert settings.failure_policy == "skip"
    assert settings.strict_format_check is True


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_WORKERS", "3")
    monkeypatch.setenv("FAILURE_POLICY", "ABORT")
    monkeypatch.setenv("LABEL_COLOR", "[0, 255, 0, 255]")
    monkeypatch.setenv("STRICT_FORMAT_CHECK", "false")
    settings = get_settings()
    assert settings.max_workers == 3
    assert settings.failure_policy == "abort"
    assert tuple(settings.label_color) == (0, 255, 0, 255)
    assert settings.strict_format_check is False


@pytest.mark.parametrize(
    "env, value",
    [
        ("FAILURE_POLICY", "explode"),
        ("MAX_WORKERS", "-1"),
        ("LABEL_COLOR", "[0, 0, 300, 255]"),
        ("TIMEOUT_SAFETY_MARGIN_SECONDS", "-0.5"),
    ],
)
def test_invalid_values(monkeypatch, env, value):
    monkeypatch.setenv(env, value)
    with pytest.raises(ValidationError):
        Settings()


def test_pipeline_options_from_settings(monkeypatch):
    monkeypatch.setenv("LABEL_TEXT", "stamped")
    monkeypatch.setenv("OUTPUT_PREFIX", "out/")
    options = PipelineOptions.from_settings(Settings())
    assert options.label == "stamped"
    assert options.output_prefix == "out/"
    assert options.color == (255, 0, 0, 255)
