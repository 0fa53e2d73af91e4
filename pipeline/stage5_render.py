"""Stage 5: Print rendering — final pages to HTML and PDF via Jinja2 + WeasyPrint.

Reads:  data/template/design.yaml   (DesignSystem — page sizes, colours, fonts; optional)
Writes: data/output/<title>.html    (open in a browser and print)
        data/output/<title>.pdf     (only when WeasyPrint's native libraries are present)

Each page is rendered with its layout template, a title derived from its text,
image/text panels adjusted for text length, and markdown-converted text.
Generated images are embedded as the data URIs the gateway returned.
The template loads Tailwind for browsers and also carries plain CSS rules for
the layout classes in use, since WeasyPrint does not run scripts.
"""
import logging
import re
from pathlib import Path

import markdown as _markdown_lib
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

try:
    import weasyprint as _weasyprint  # requires native GTK/Pango libs at runtime
except OSError:  # pragma: no cover — native libs absent in test env
    _weasyprint = None  # type: ignore[assignment]

from models.design import DesignSystem
from models.page import Page
from models.wizard import GenerationCursor
from pipeline import stage3_layout
from settings import Settings

logger = logging.getLogger(__name__)

# Path (relative to the package root) where Jinja2 looks for templates
_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

# Tailwind arbitrary heights, e.g. min-h-[300px], max-h-[45%]
_HEIGHT_CLASS = re.compile(r"\b(min|max)-h-\[([0-9.]+(?:px|%))\]")


def run(
    settings: Settings,
    pages: list[Page],
    cursor: GenerationCursor | None = None,
    design: DesignSystem | None = None,
) -> Path:
    """Render the pages to HTML, and to PDF when WeasyPrint is usable.

    Returns the PDF path, or the HTML path when no PDF could be written.
    """
    if design is None:
        design = DesignSystem.load_or_default(settings.design_yaml_path)

    html = render_html(pages, cursor, design)
    stem = _slugify(stage3_layout.derive_title(pages[0].text) if pages else "")
    settings.output_dir.mkdir(parents=True, exist_ok=True)

    html_path = settings.output_dir / f"{stem}.html"
    html_path.write_text(html, encoding="utf-8")
    logger.info("Stage 5: HTML written → %s", html_path)

    if _weasyprint is None:  # pragma: no cover
        logger.warning(
            "WeasyPrint native libraries (GTK/Pango) are not available; "
            "open %s in a browser and print it instead.", html_path,
        )
        return html_path

    pdf_path = settings.output_dir / f"{stem}.pdf"
    _weasyprint.HTML(string=html, base_url=str(settings.output_dir.resolve())).write_pdf(str(pdf_path))
    logger.info("Stage 5 complete → %s", pdf_path)
    return pdf_path


# ---------------------------------------------------------------------------
# HTML rendering
# ---------------------------------------------------------------------------

def render_html(
    pages: list[Page],
    cursor: GenerationCursor | None = None,
    design: DesignSystem | None = None,
) -> str:
    """Render the Jinja2 template to an HTML string."""
    env = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "j2"]),
    )
    env.filters["markdown"] = lambda text: Markup(
        _markdown_lib.markdown(text, extensions=["extra"])
    )
    template = env.get_template("document.html.j2")
    views = [_page_view(i, page, cursor) for i, page in enumerate(pages)]
    return template.render(
        pages=views,
        height_rules=_height_rules(views),
        ds=design or DesignSystem(),
    )


def _height_rules(views: list[dict]) -> list[tuple[str, str]]:
    """(min|max, value) for every arbitrary-height class used on the pages."""
    classes = " ".join(
        view[key] for view in views
        for key in ("container_class", "image_class", "text_class")
    )
    return sorted(set(_HEIGHT_CLASS.findall(classes)))


def _page_view(index: int, page: Page, cursor: GenerationCursor | None) -> dict:
    """Everything the template needs for one page, with classes pre-computed."""
    template = stage3_layout.layout_template(page.layout, page.orientation, len(page.images))
    text_length = len(page.text)
    return {
        "page": page,
        "title": stage3_layout.derive_title(page.text),
        "container_class": template.container,
        "title_class": template.title_class,
        "image_class": stage3_layout.adjust_image_class(template, text_length, len(page.images)),
        "text_class": stage3_layout.text_class_for(page, template),
        "current_image": (
            cursor.image_index
            if cursor and not cursor.complete and cursor.page_index == index
            else None
        ),
    }


# ---------------------------------------------------------------------------
# Output path
# ---------------------------------------------------------------------------

def _slugify(text: str) -> str:
    """Convert a title to a safe ASCII filename slug."""
    text = text.lower()
    text = re.sub(r"[^a-z0-9]+", "_", text)
    text = text.strip("_")
    return text[:50] or "document"
