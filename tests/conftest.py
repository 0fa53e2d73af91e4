import random
from pathlib import Path

import pytest

from settings import Settings


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with a test key; scratch and project dirs live in a temp directory."""
    return Settings(
        together_api_key="test-key-not-used-in-unit-tests",
        scratch_dir=tmp_path / "scratch",
        project_dir=tmp_path / "data",
    )


@pytest.fixture
def unconfigured_settings(tmp_path: Path) -> Settings:
    return Settings(
        together_api_key=None,
        scratch_dir=tmp_path / "scratch",
        project_dir=tmp_path / "data",
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)

