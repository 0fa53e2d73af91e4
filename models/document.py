from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

LayoutStyle = Literal["modern", "classic", "magazine", "minimal"]
Orientation = Literal["portrait", "landscape"]

KNOWN_STYLES: tuple[str, ...] = ("modern", "classic", "magazine", "minimal")

GENERIC_PROMPTS: tuple[str, ...] = (
    "A visual summary of the key concepts",
    "An illustration of the main themes",
    "A conceptual representation of the content",
)


class Document(BaseModel):
    """Text, image prompts and layout recommendations for one wizard run.

    Produced once by the synthesizer or the analysis gateway and frozen
    afterwards; pages copy its text and prompts rather than referencing it.
    """

    model_config = ConfigDict(frozen=True)

    text: str
    image_prompts: list[str] = Field(default_factory=list)
    recommended_style: LayoutStyle = "modern"
    recommended_images_per_page: int = Field(default=1, ge=1)
    recommended_orientation: Orientation = "portrait"


class TextAnalysis(BaseModel):
    """Tolerant parse of the completion service's JSON answer.

    Every field is optional: the model may omit keys or return values outside
    the known vocabularies. `to_document()` replaces anything unusable with
    the documented defaults.
    """

    model_config = ConfigDict(extra="ignore")

    enhancedText: str | None = None
    imagePrompts: list[str] | None = None
    recommendedStyle: str | None = None
    recommendedImagesPerPage: int | None = None
    recommendedOrientation: str | None = None

    @field_validator("imagePrompts", mode="before")
    @classmethod
    def keep_string_prompts(cls, v):
        if not isinstance(v, list):
            return None
        return [p for p in v if isinstance(p, str) and p.strip()]

    @field_validator("recommendedImagesPerPage", mode="before")
    @classmethod
    def coerce_count(cls, v):
        try:
            return int(v)
        except (TypeError, ValueError):
            return None

    def to_document(self, original_text: str) -> Document:
        style = self.recommendedStyle if self.recommendedStyle in KNOWN_STYLES else "modern"
        orientation = (
            self.recommendedOrientation
            if self.recommendedOrientation in ("portrait", "landscape")
            else "portrait"
        )
        per_page = self.recommendedImagesPerPage
        return Document(
            text=self.enhancedText or original_text,
            image_prompts=self.imagePrompts or list(GENERIC_PROMPTS),
            recommended_style=style,
            recommended_images_per_page=per_page if per_page and per_page >= 1 else 1,
            recommended_orientation=orientation,
        )


def fallback_document(text: str) -> Document:
    """Document used when analysis fails: raw text, generic prompts, default layout."""
    return Document(text=text, image_prompts=list(GENERIC_PROMPTS))
