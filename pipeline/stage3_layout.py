"""Stage 3: Layout — page templates and page skeletons.

Pure functions only:
  - layout_template()      style + orientation + image count → LayoutTemplate
  - adjust_image_class()   render-time image panel bounds from text length
  - expanded_text_class()  render-time text panel height from text length
  - derive_title()         printed page title from the page text
  - build_pages()          one Page per requested page, placeholder slots
  - resize_page()          apply one page's edited layout options

Layout decisions:
  - Landscape:  container switches from stacked column to a 2-column grid
  - >1 image:   image panel min height drops to 200px; landscape adds a 2-column grid
  - Text heavy: more than 500 characters; tightens the image panel bounds
"""
import logging
import re

from models.document import Document
from models.layout import LayoutTemplate
from models.page import (
    DEFAULT_IMAGE_PROMPT,
    PLACEHOLDER_URL,
    ImageSlot,
    LayoutOptions,
    Page,
    PageLayoutOptions,
)

logger = logging.getLogger(__name__)

_BASE_CONTAINER = "w-full bg-white shadow-lg rounded-lg overflow-hidden flex flex-col"
_BASE_IMAGE = "flex flex-wrap gap-4 justify-center p-4"
_BASE_TEXT = "prose prose-sm max-w-none p-6"
_BASE_TITLE = "text-xl font-bold mb-4 px-4 pt-4"

# style → (title emphasis, image panel min height, image panel max height)
_STYLES: dict[str, tuple[str, str, str]] = {
    "modern":   ("text-center",          "min-h-[300px]", "max-h-[400px]"),
    "classic":  ("font-serif",           "min-h-[300px]", "max-h-[400px]"),
    "magazine": ("text-2xl tracking-tight", "min-h-[250px]", "max-h-[350px]"),
    "minimal":  ("font-light",           "min-h-[200px]", "max-h-[300px]"),
}

TEXT_HEAVY_THRESHOLD = 500

_PANEL_BOUNDS = re.compile(r"\s*\b(?:min|max)-h-\[[^\]]+\]")


def layout_template(style: str, orientation: str, image_count: int) -> LayoutTemplate:
    """Return the structural classes for one page. Unknown styles use `modern`."""
    title_emphasis, min_h, max_h = _STYLES.get(style, _STYLES["modern"])
    landscape = orientation == "landscape"

    container = f"{_BASE_CONTAINER} min-h-[800px]"
    if landscape:
        container = container.replace("flex-col", "grid grid-cols-2 gap-4")

    image_class = f"{_BASE_IMAGE} flex-shrink-0 {min_h} {max_h}"
    if image_count > 1:
        image_class = image_class.replace("min-h-[300px]", "min-h-[200px]")
        if landscape:
            image_class += " grid grid-cols-2"

    return LayoutTemplate(
        container=container,
        image_class=image_class,
        text_class=f"{_BASE_TEXT} flex-grow overflow-y-auto",
        title_class=f"{_BASE_TITLE} {title_emphasis}",
    )


def adjust_image_class(template: LayoutTemplate, text_length: int, image_count: int) -> str:
    """Shrink the image panel as text gets longer and images get more numerous."""
    heavy = text_length > TEXT_HEAVY_THRESHOLD
    if image_count > 2:
        bounds = "min-h-[35%] max-h-[45%]" if heavy else "min-h-[45%] max-h-[55%]"
    elif heavy:
        bounds = "min-h-[30%] max-h-[40%]"
    else:
        return template.image_class
    return f"{_PANEL_BOUNDS.sub('', template.image_class)} {bounds}"


def expanded_text_class(template: LayoutTemplate, text_length: int) -> str:
    if text_length > 2000:
        height = "min-h-[500px]"
    elif text_length > 1000:
        height = "min-h-[400px]"
    else:
        height = "min-h-[300px]"
    return (
        f"{template.text_class} prose prose-sm max-w-none p-4 text-gray-800 "
        f"overflow-y-auto {height} flex-grow"
    )


def text_class_for(page: Page, template: LayoutTemplate) -> str:
    if page.text_display == "expanded":
        return expanded_text_class(template, len(page.text))
    return template.text_class


def derive_title(text: str) -> str:
    """First markdown heading, else the first five words (max 20 chars + '...')."""
    first_line = text.split("\n", 1)[0]
    if first_line.startswith("#"):
        return re.sub(r"^#+\s*", "", first_line)
    first_words = " ".join(text.split()[:5])
    if len(first_words) > 20:
        return first_words[:20] + "..."
    return first_words


# ---------------------------------------------------------------------------
# Page skeletons
# ---------------------------------------------------------------------------

def build_pages(document: Document, options: LayoutOptions) -> list[Page]:
    """Create `total_pages` pages, each with `images_per_page` placeholder slots."""
    pages = [
        Page(
            id=i,
            title=f"Page {i + 1}",
            layout=options.layout_style,
            orientation=options.orientation,
            images=[
                _new_slot(i, j, document.image_prompts)
                for j in range(options.images_per_page)
            ],
            text=document.text,
            text_display="compact",
        )
        for i in range(options.total_pages)
    ]
    logger.info("Stage 3 complete — %d pages × %d images, style %s, %s",
                options.total_pages, options.images_per_page,
                options.layout_style, options.orientation)
    return pages


def resize_page(page: Page, page_options: PageLayoutOptions, prompts: list[str]) -> Page:
    """Apply edited options to one page.

    Existing slots are kept by position up to the new count; growth appends
    fresh placeholder slots. Orientation is left as it was.
    """
    images = [
        page.images[j] if j < len(page.images) else _new_slot(page.id, j, prompts)
        for j in range(page_options.images_per_page)
    ]
    return page.model_copy(update={
        "layout": page_options.layout,
        "images": images,
        "text_display": page_options.text_display,
    })


def _new_slot(page_id: int, index: int, prompts: list[str]) -> ImageSlot:
    prompt = prompts[index % len(prompts)] if prompts else DEFAULT_IMAGE_PROMPT
    return ImageSlot(
        id=ImageSlot.slot_id(page_id, index),
        prompt=prompt or DEFAULT_IMAGE_PROMPT,
        url=PLACEHOLDER_URL,
    )
