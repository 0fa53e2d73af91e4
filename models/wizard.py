"""Wizard step state as a tagged union.

Each variant carries only the data that is valid in that step, so combinations
such as "editing a page while choosing layout options" cannot be represented.
"""
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from models.document import Document
from models.page import LayoutOptions, Page, PageLayoutOptions

InputMode = Literal["prompt", "file"]


class InputStep(BaseModel):
    step: Literal["input"] = "input"
    input_mode: InputMode = "prompt"

    @property
    def number(self) -> int:
        return 1


class AnalysisStep(BaseModel):
    step: Literal["analysis"] = "analysis"
    input_mode: InputMode = "prompt"
    document: Document
    options: LayoutOptions  # seeded from the document, kept across Back

    @property
    def number(self) -> int:
        return 2


class LayoutOptionsStep(BaseModel):
    step: Literal["layout_options"] = "layout_options"
    input_mode: InputMode = "prompt"
    document: Document
    options: LayoutOptions

    @property
    def number(self) -> int:
        return 3


class PageEditing(BaseModel):
    page_id: int
    options: PageLayoutOptions


class PreviewStep(BaseModel):
    step: Literal["preview"] = "preview"
    document: Document
    options: LayoutOptions
    pages: list[Page]
    editing: PageEditing | None = None

    @property
    def number(self) -> int:
        return 4


class GenerationCursor(BaseModel):
    """Position of the next slot to fill, page-major then slot-minor."""

    page_index: int = Field(default=0, ge=0)
    image_index: int = Field(default=0, ge=0)
    complete: bool = False

    def has_rendered(self, page_index: int, image_index: int) -> bool:
        """True when the slot at (page_index, image_index) lies before the cursor."""
        if self.complete:
            return True
        if page_index != self.page_index:
            return page_index < self.page_index
        return image_index < self.image_index


class GenerateStep(BaseModel):
    step: Literal["generate"] = "generate"
    document: Document
    options: LayoutOptions
    pages: list[Page]
    cursor: GenerationCursor = Field(default_factory=GenerationCursor)

    @property
    def number(self) -> int:
        return 5


WizardState = Annotated[
    Union[InputStep, AnalysisStep, LayoutOptionsStep, PreviewStep, GenerateStep],
    Field(discriminator="step"),
]
