"""End-to-end CLI run with the image gateway and PDF writer mocked."""
from unittest.mock import MagicMock, patch

import pytest

from run_wizard import main


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("IPG_TOGETHER_API_KEY", "tk-test")
    monkeypatch.setenv("IPG_SCRATCH_DIR", str(tmp_path / "scratch"))
    return tmp_path


def test_topic_run_writes_html(workdir):
    image = MagicMock(data_uri="data:image/png;base64,aGk=")
    with patch("pipeline.wizard.stage4_images.run", return_value=image) as generate, \
         patch("pipeline.stage5_render._weasyprint", None):
        output = main(["--topic", "sustainable urban living", "--pages", "2",
                       "--images-per-page", "2", "--style", "classic"])

    assert generate.call_count == 4
    assert output.suffix == ".html"
    html = output.read_text(encoding="utf-8")
    assert html.count('class="document-page') == 2
    assert html.count("data:image/png;base64,aGk=") == 4
    assert "font-serif" in html


def test_file_run_falls_back_when_analysis_fails(workdir):
    notes = workdir / "notes.txt"
    notes.write_text("Tidal pools host small crabs.", encoding="utf-8")
    image = MagicMock(data_uri="data:image/png;base64,aGk=")
    with patch("pipeline.wizard.stage2_analyze.run", side_effect=RuntimeError("down")), \
         patch("pipeline.wizard.stage4_images.run", return_value=image), \
         patch("pipeline.stage5_render._weasyprint", None):
        output = main(["--file", str(notes)])

    assert "Tidal pools host small crabs." in output.read_text(encoding="utf-8")


def test_topic_and_file_are_exclusive(workdir):
    with pytest.raises(SystemExit):
        main(["--topic", "x", "--file", "y.txt"])


def _remote_api() -> MagicMock:
    api = MagicMock()
    api.__enter__.return_value = api
    api.__exit__.return_value = False
    api.generate_image.return_value = "data:image/png;base64,aGk="
    return api


def test_api_client_closed_after_remote_run(workdir):
    api = _remote_api()
    with patch("run_wizard.ApiClient", return_value=api) as api_cls, \
         patch("pipeline.stage5_render._weasyprint", None):
        main(["--topic", "tides", "--api-url", "http://localhost:8000"])

    api_cls.assert_called_once_with("http://localhost:8000", timeout=120.0)
    assert api.generate_image.call_count == 1
    api.__exit__.assert_called_once()


def test_api_client_closed_when_a_step_fails(workdir):
    api = _remote_api()
    with patch("run_wizard.ApiClient", return_value=api), \
         patch("pipeline.wizard.stage5_render.run", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            main(["--topic", "tides", "--api-url", "http://localhost:8000"])

    api.__exit__.assert_called_once()
