"""Tests for Stage 5 print rendering."""
from pathlib import Path
from unittest.mock import MagicMock, patch

from models.design import ColorPalette, DesignSystem, PageDimensions
from models.page import ImageSlot, Page
from models.wizard import GenerationCursor
from pipeline.stage5_render import _slugify, render_html, run


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _page(page_id=0, text="# Solar Power\n\nPanels turn **light** into power.", images=2,
          layout="modern", orientation="portrait", text_display="compact") -> Page:
    return Page(
        id=page_id,
        title=f"Page {page_id + 1}",
        layout=layout,
        orientation=orientation,
        images=[
            ImageSlot(id=f"img-{page_id}-{j}", prompt=f"prompt {j}",
                      url=f"data:image/png;base64,IMG{page_id}{j}")
            for j in range(images)
        ],
        text=text,
        text_display=text_display,
    )


def _mock_weasyprint():
    """Context manager: patch the module-level _weasyprint with a fake that writes %PDF."""
    mock_wp = MagicMock()
    mock_html_instance = MagicMock()
    mock_wp.HTML.return_value = mock_html_instance
    mock_html_instance.write_pdf.side_effect = lambda path, **kw: Path(path).write_bytes(b"%PDF")
    return patch("pipeline.stage5_render._weasyprint", mock_wp)


# ---------------------------------------------------------------------------
# _slugify
# ---------------------------------------------------------------------------

class TestSlugify:
    def test_simple_title(self):
        assert _slugify("Solar Power") == "solar_power"

    def test_special_chars_stripped(self):
        assert _slugify("Solar Power: An In-depth Analysis!") == "solar_power_an_in_depth_analysis"

    def test_empty_string_fallback(self):
        assert _slugify("") == "document"
        assert _slugify("???") == "document"

    def test_truncated_at_50_chars(self):
        assert len(_slugify("word " * 30)) <= 50


# ---------------------------------------------------------------------------
# render_html
# ---------------------------------------------------------------------------

class TestRenderHtml:
    def test_title_derived_from_text(self):
        html = render_html([_page()])
        assert "Solar Power</h3>" in html

    def test_markdown_converted(self):
        html = render_html([_page()])
        assert "<strong>light</strong>" in html
        assert "**light**" not in html

    def test_images_embedded_in_order(self):
        html = render_html([_page()])
        first = html.index('src="data:image/png;base64,IMG00"')
        second = html.index('src="data:image/png;base64,IMG01"')
        assert first < second
        assert 'alt="Generated image 1"' in html
        assert 'data-image-id="img-0-1"' in html

    def test_prompt_is_escaped(self):
        page = _page(images=1)
        page.images[0] = page.images[0].model_copy(update={"prompt": "<script>x</script>"})
        html = render_html([page])
        assert "<script>x</script>" not in html
        assert "&lt;script&gt;" in html

    def test_every_page_rendered(self):
        html = render_html([_page(0), _page(1), _page(2)])
        assert html.count('class="document-page') == 3
        assert 'data-page-id="2"' in html

    def test_landscape_uses_grid_container(self):
        html = render_html([_page(orientation="landscape")])
        assert "page-landscape" in html
        assert "grid grid-cols-2 gap-4" in html

    def test_style_title_class(self):
        assert "font-serif" in render_html([_page(layout="classic")])

    def test_heavy_text_tightens_image_panel(self):
        html = render_html([_page(text="word " * 200, images=1)])
        assert "min-h-[30%] max-h-[40%]" in html

    def test_expanded_text_display(self):
        html = render_html([_page(text="x" * 1500, text_display="expanded")])
        assert "min-h-[400px] flex-grow" in html

    def test_current_image_marked_while_generating(self):
        cursor = GenerationCursor(page_index=0, image_index=1)
        html = render_html([_page()], cursor)
        assert html.count("slot-current") == 2  # stylesheet rule + one image
        assert html.index("slot-current", html.index("<body>")) > html.index("IMG00")

    def test_no_marker_when_complete(self):
        html = render_html([_page()], GenerationCursor(page_index=1, complete=True))
        assert html.count("slot-current") == 1

    def test_layout_classes_have_print_rules(self):
        html = render_html([_page(orientation="landscape", images=2)])
        assert ".grid-cols-2 { grid-template-columns: repeat(2, minmax(0, 1fr)); }" in html
        assert ".flex-col { flex-direction: column; }" in html
        assert ".min-h-\\[800px\\] { min-height: 800px; }" in html
        assert ".min-h-\\[200px\\] { min-height: 200px; }" in html

    def test_percent_heights_escaped_in_selector(self):
        html = render_html([_page(text="word " * 200, images=1)])
        assert ".min-h-\\[30\\%\\] { min-height: 30%; }" in html
        assert ".max-h-\\[40\\%\\] { max-height: 40%; }" in html

    def test_only_used_heights_emitted(self):
        html = render_html([_page(layout="minimal", images=1, text="short")])
        assert "min-height: 200px" in html
        assert "min-height: 250px" not in html

    def test_design_values_in_css(self):
        design = DesignSystem(
            page=PageDimensions(width_mm=148, height_mm=210, margin_mm=8),
            colors=ColorPalette(primary="#AA0000"),
        )
        html = render_html([_page()], design=design)
        assert "size: 148.0mm 210.0mm" in html
        assert "size: 210.0mm 148.0mm" in html
        assert "#AA0000" in html


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

class TestRun:
    def test_pdf_written_to_output_dir(self, settings):
        with _mock_weasyprint():
            result = run(settings, [_page()])
        assert result.exists()
        assert result.suffix == ".pdf"
        assert result.parent == settings.output_dir
        assert result.name == "solar_power.pdf"

    def test_html_written_alongside(self, settings):
        with _mock_weasyprint():
            run(settings, [_page()])
        html = (settings.output_dir / "solar_power.html").read_text(encoding="utf-8")
        assert "IMG00" in html

    def test_html_only_without_weasyprint(self, settings):
        with patch("pipeline.stage5_render._weasyprint", None):
            result = run(settings, [_page()])
        assert result.suffix == ".html"
        assert result.exists()

    def test_design_loaded_from_yaml(self, settings):
        settings.design_yaml_path.parent.mkdir(parents=True)
        settings.design_yaml_path.write_text("colors:\n  primary: '#123456'\n", encoding="utf-8")
        with patch("pipeline.stage5_render._weasyprint", None):
            result = run(settings, [_page()])
        assert "#123456" in result.read_text(encoding="utf-8")

    def test_custom_design_passed_through(self, settings):
        with _mock_weasyprint() as mock_wp:
            run(settings, [_page()], design=DesignSystem(colors=ColorPalette(primary="#654321")))
        html_arg = mock_wp.HTML.call_args.kwargs["string"]
        assert "#654321" in html_arg

    def test_untitled_document(self, settings):
        with patch("pipeline.stage5_render._weasyprint", None):
            result = run(settings, [_page(text="")])
        assert result.name == "document.html"
