from typing import Literal

from pydantic import BaseModel, Field

from models.document import LayoutStyle, Orientation

PLACEHOLDER_URL = "https://placehold.co/600x400/gray/white?text=Placeholder+Image"
WAITING_URL = "https://placehold.co/600x400/gray/white?text=Waiting+To+Generate"
ERROR_URL = "https://placehold.co/600x400/ff0000/white?text=Error+Generating+Image"
REGENERATE_ERROR_URL = "https://placehold.co/600x400/ff0000/white?text=Error+Regenerating+Image"

DEFAULT_IMAGE_PROMPT = "Default image prompt"

TextDisplay = Literal["compact", "expanded"]


class ImageSlot(BaseModel):
    id: str  # img-<page id>-<slot index>
    prompt: str
    url: str = PLACEHOLDER_URL

    @staticmethod
    def slot_id(page_id: int, index: int) -> str:
        return f"img-{page_id}-{index}"


class Page(BaseModel):
    """One document page.

    `text` starts as the whole document text. `title` is the creation-time
    label ("Page 1"); the printed title is derived from `text` at render time.
    """

    id: int = Field(ge=0)
    title: str
    layout: str = "modern"  # unknown names render with the modern template
    orientation: Orientation = "portrait"
    images: list[ImageSlot] = Field(default_factory=list)
    text: str = ""
    text_display: TextDisplay = "compact"


class LayoutOptions(BaseModel):
    orientation: Orientation = "portrait"
    total_pages: int = Field(default=1, ge=1)
    images_per_page: int = Field(default=1, ge=1)
    layout_style: LayoutStyle = "modern"


class PageLayoutOptions(BaseModel):
    """Scratch options while one page's layout is being edited."""

    layout: LayoutStyle = "modern"
    images_per_page: int = Field(default=1, ge=1)
    text_display: TextDisplay = "compact"
