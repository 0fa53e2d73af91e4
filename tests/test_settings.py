from pathlib import Path

import pytest
from pydantic import ValidationError

from settings import Settings


def test_settings_defaults():
    s = Settings(together_api_key="tk-test")
    assert s.together_api_key == "tk-test"
    assert s.together_base_url == "https://api.together.xyz/v1"
    assert s.image_model == "black-forest-labs/FLUX.1-schnell"
    assert s.image_steps == 20
    assert (s.image_width, s.image_height) == (1024, 1024)
    assert s.project_dir == Path("./data")


def test_settings_api_key_is_optional_at_load_time(monkeypatch):
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    monkeypatch.delenv("IPG_TOGETHER_API_KEY", raising=False)
    s = Settings(_env_file=None)
    assert s.together_api_key is None


def test_settings_derived_paths():
    s = Settings(scratch_dir=Path("/tmp/scratch"), project_dir=Path("/tmp/project"))
    assert s.analysis_dir == Path("/tmp/scratch/analysis")
    assert s.images_dir == Path("/tmp/scratch/generated-images")
    assert s.output_dir == Path("/tmp/project/output")
    assert s.design_yaml_path == Path("/tmp/project/template/design.yaml")


def test_image_dimensions_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(image_width=0)
    with pytest.raises(ValidationError):
        Settings(image_steps=-1)


def test_request_timeout_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(request_timeout=0)


def test_settings_plain_together_env_var(monkeypatch):
    monkeypatch.delenv("IPG_TOGETHER_API_KEY", raising=False)
    monkeypatch.setenv("TOGETHER_API_KEY", "tk-from-env")
    assert Settings(_env_file=None).together_api_key == "tk-from-env"


def test_settings_env_prefix(monkeypatch):
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    monkeypatch.setenv("IPG_TOGETHER_API_KEY", "tk-prefixed")
    monkeypatch.setenv("IPG_IMAGE_STEPS", "4")
    s = Settings(_env_file=None)
    assert s.together_api_key == "tk-prefixed"
    assert s.image_steps == 4
