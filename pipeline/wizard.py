"""Wizard controller — drives one document through the five wizard steps.

    Input(1) → Analysis(2) → LayoutOptions(3) → Preview(4) → Generate(5)

Step state is one of the variants in models.wizard; every action checks the
current variant and raises WizardStateError when called in the wrong step.
Pages are never mutated in place: each change replaces the page list.

Image generation is sequential. generate_next() performs one step of a
single-consumer loop: pick the work item under the cursor, await its gateway
result, apply a pure reducer to the page list, advance the cursor. At most
one image request is ever in flight.
"""
import logging
import random
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError

from models.document import KNOWN_STYLES, Document, fallback_document
from models.events import WizardEvent
from models.page import (
    ERROR_URL,
    REGENERATE_ERROR_URL,
    WAITING_URL,
    LayoutOptions,
    Page,
    PageLayoutOptions,
)
from models.wizard import (
    AnalysisStep,
    GenerateStep,
    GenerationCursor,
    InputMode,
    InputStep,
    LayoutOptionsStep,
    PageEditing,
    PreviewStep,
    WizardState,
)
from pipeline import stage1_synthesize, stage2_analyze, stage3_layout, stage4_images, stage5_render
from pipeline.errors import WizardStateError
from settings import Settings

logger = logging.getLogger(__name__)


class Gateways(Protocol):
    """The two remote services the wizard depends on."""

    def analyze_text(self, text: str) -> Document: ...

    def generate_image(self, prompt: str) -> str:
        """Return a displayable URL (usually a data URI) for `prompt`."""
        ...


class LocalGateways:
    """Calls the gateway stages in-process instead of over HTTP."""

    def __init__(self, settings: Settings, rng: random.Random | None = None):
        self.settings = settings
        self.rng = rng

    def analyze_text(self, text: str) -> Document:
        return stage2_analyze.run(self.settings, text).document

    def generate_image(self, prompt: str) -> str:
        return stage4_images.run(self.settings, prompt, rng=self.rng).data_uri


# ---------------------------------------------------------------------------
# Sequential generation: work items and reducer
# ---------------------------------------------------------------------------

class WorkItem(BaseModel):
    page_index: int
    image_index: int
    prompt: str


def next_work_item(
    pages: list[Page], cursor: GenerationCursor
) -> tuple[GenerationCursor, WorkItem | None]:
    """Resolve the cursor to the next slot to fill.

    Returns the (possibly moved) cursor and the work item, or None when this
    step only moves the cursor: to the next page when the current page is
    exhausted, or to `complete` when every page is.
    """
    if cursor.complete:
        return cursor, None
    if cursor.page_index >= len(pages):
        return cursor.model_copy(update={"complete": True}), None
    page = pages[cursor.page_index]
    if cursor.image_index >= len(page.images):
        return GenerationCursor(page_index=cursor.page_index + 1, image_index=0), None
    slot = page.images[cursor.image_index]
    return cursor, WorkItem(
        page_index=cursor.page_index, image_index=cursor.image_index, prompt=slot.prompt
    )


def apply_image_result(pages: list[Page], page_index: int, image_index: int, url: str) -> list[Page]:
    """Return a new page list with one slot's URL replaced."""
    result = []
    for i, page in enumerate(pages):
        if i == page_index:
            images = [
                img.model_copy(update={"url": url}) if j == image_index else img
                for j, img in enumerate(page.images)
            ]
            page = page.model_copy(update={"images": images})
        result.append(page)
    return result


def slot_count(pages: list[Page]) -> int:
    return sum(len(p.images) for p in pages)


def rendered_count(pages: list[Page], cursor: GenerationCursor) -> int:
    return sum(
        1
        for i, page in enumerate(pages)
        for j in range(len(page.images))
        if cursor.has_rendered(i, j)
    )


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class WizardController:
    def __init__(
        self,
        gateways: Gateways,
        rng: random.Random | None = None,
        synthesize: Callable[[str, random.Random | None], Document] = stage1_synthesize.run,
    ):
        self.gateways = gateways
        self.rng = rng
        self._synthesize = synthesize
        self.state: WizardState = InputStep()
        self.loading = False

    @property
    def step(self) -> int:
        return self.state.number

    # -- Step 1: input ------------------------------------------------------

    def set_input_mode(self, mode: InputMode) -> None:
        state = self._expect(InputStep)
        self.state = state.model_copy(update={"input_mode": mode})

    def submit_prompt(self, topic: str) -> Document:
        """Synthesize a document from `topic` and move to Analysis."""
        state = self._expect(InputStep)
        if state.input_mode != "prompt":
            raise WizardStateError("submit_prompt requires prompt input mode")
        if not topic or not topic.strip():
            raise ValueError("topic must not be empty")
        self.loading = True
        try:
            document = self._synthesize(topic, self.rng)
        finally:
            self.loading = False
        self.state = AnalysisStep(
            input_mode="prompt", document=document, options=_recommended_options(document)
        )
        return document

    def submit_text(self, text: str) -> Document:
        """Analyse uploaded text and move to Analysis.

        Any gateway failure falls back to the raw text with generic prompts
        and the default layout.
        """
        state = self._expect(InputStep)
        if state.input_mode != "file":
            raise WizardStateError("submit_text requires file input mode")
        if not text:
            raise ValueError("uploaded text must not be empty")
        cleaned = stage2_analyze.clean_uploaded_text(text)
        self.loading = True
        try:
            document = self.gateways.analyze_text(cleaned)
        except Exception as exc:
            logger.warning("Text analysis failed — using the uploaded text as is: %s", exc)
            document = fallback_document(cleaned)
        finally:
            self.loading = False
        self.state = AnalysisStep(
            input_mode="file", document=document, options=_recommended_options(document)
        )
        return document

    # -- Step 2/3: analysis and layout options -------------------------------

    def continue_to_layout(self) -> LayoutOptions:
        state = self._expect(AnalysisStep)
        self.state = LayoutOptionsStep(
            input_mode=state.input_mode, document=state.document, options=state.options
        )
        return state.options

    def update_layout_option(self, name: str, value) -> LayoutOptions:
        state = self._expect(LayoutOptionsStep)
        options = _updated(state.options, name, value)
        self.state = state.model_copy(update={"options": options})
        return options

    def confirm_layout(self) -> list[Page]:
        """Build the page skeletons and move to Preview."""
        state = self._expect(LayoutOptionsStep)
        pages = stage3_layout.build_pages(state.document, state.options)
        self.state = PreviewStep(document=state.document, options=state.options, pages=pages)
        return pages

    # -- Step 4: preview and per-page editing ---------------------------------

    def start_editing(self, page_id: int) -> PageLayoutOptions:
        state = self._expect(PreviewStep)
        if state.editing is not None:
            raise WizardStateError(f"already editing page {state.editing.page_id}")
        page = _find_page(state.pages, page_id)
        options = PageLayoutOptions(
            layout=page.layout if page.layout in KNOWN_STYLES else "modern",
            images_per_page=max(len(page.images), 1),
            text_display=page.text_display,
        )
        self.state = state.model_copy(
            update={"editing": PageEditing(page_id=page_id, options=options)}
        )
        return options

    def update_page_option(self, name: str, value) -> PageLayoutOptions:
        state = self._expect(PreviewStep)
        editing = self._expect_editing(state)
        options = _updated(editing.options, name, value)
        self.state = state.model_copy(
            update={"editing": editing.model_copy(update={"options": options})}
        )
        return options

    def apply_page_layout(self) -> Page:
        """Apply the edited options to exactly the page being edited."""
        state = self._expect(PreviewStep)
        editing = self._expect_editing(state)
        prompts = state.document.image_prompts
        pages = [
            stage3_layout.resize_page(p, editing.options, prompts) if p.id == editing.page_id else p
            for p in state.pages
        ]
        self.state = state.model_copy(update={"pages": pages, "editing": None})
        return _find_page(pages, editing.page_id)

    def cancel_editing(self) -> None:
        state = self._expect(PreviewStep)
        self.state = state.model_copy(update={"editing": None})

    def start_generation(self) -> list[Page]:
        """Reset every slot to the waiting placeholder and move to Generate."""
        state = self._expect(PreviewStep)
        if state.editing is not None:
            raise WizardStateError("finish editing before generating")
        pages = [
            p.model_copy(update={
                "images": [img.model_copy(update={"url": WAITING_URL}) for img in p.images]
            })
            for p in state.pages
        ]
        self.state = GenerateStep(
            document=state.document, options=state.options, pages=pages,
            cursor=GenerationCursor(),
        )
        return pages

    # -- Step 5: sequential generation ---------------------------------------

    @property
    def generation_complete(self) -> bool:
        return isinstance(self.state, GenerateStep) and self.state.cursor.complete

    @property
    def can_print(self) -> bool:
        return self.generation_complete

    def generate_next(self) -> WizardEvent:
        """Run one step of the sequential loop. Makes at most one image request."""
        state = self._expect(GenerateStep)
        cursor, item = next_work_item(state.pages, state.cursor)

        if item is None:
            self.state = state.model_copy(update={"cursor": cursor})
            if cursor.complete:
                return self._event("complete", "All images generated")
            return self._event(
                "next_page", f"Moving to page {cursor.page_index + 1}",
                {"page_index": cursor.page_index},
            )

        url = self._request_image(item.prompt, ERROR_URL)
        pages = apply_image_result(state.pages, item.page_index, item.image_index, url)
        cursor = cursor.model_copy(update={"image_index": item.image_index + 1})
        self.state = state.model_copy(update={"pages": pages, "cursor": cursor})
        return self._event(
            "generate_image",
            f"Generated page {item.page_index + 1}, image {item.image_index + 1}",
            {
                "page_index": item.page_index,
                "image_index": item.image_index,
                "failed": url == ERROR_URL,
            },
        )

    def stream(self) -> Iterator[WizardEvent]:
        """Run generate_next() until every page is exhausted."""
        self._expect(GenerateStep)
        while not self.generation_complete:
            event = self.generate_next()
            logger.info("[%3.0f%%] %s", event.progress * 100, event.message)
            yield event

    def regenerate(self, page_id: int, image_id: str) -> str:
        """Re-request one already rendered slot; no other slot changes."""
        state = self._expect(GenerateStep)
        page_index, page = next(
            ((i, p) for i, p in enumerate(state.pages) if p.id == page_id), (None, None)
        )
        if page is None:
            raise WizardStateError(f"unknown page {page_id}")
        image_index = next((j for j, img in enumerate(page.images) if img.id == image_id), None)
        if image_index is None:
            raise WizardStateError(f"unknown image {image_id} on page {page_id}")
        if not state.cursor.has_rendered(page_index, image_index):
            raise WizardStateError(f"image {image_id} has not been generated yet")

        url = self._request_image(page.images[image_index].prompt, REGENERATE_ERROR_URL)
        # Re-read state: the reducer applies to the current collection.
        state = self._expect(GenerateStep)
        pages = apply_image_result(state.pages, page_index, image_index, url)
        self.state = state.model_copy(update={"pages": pages})
        return url

    # -- Navigation and output ------------------------------------------------

    def back(self) -> None:
        state = self.state
        if isinstance(state, AnalysisStep):
            self.state = InputStep(input_mode=state.input_mode)
        elif isinstance(state, LayoutOptionsStep):
            self.state = AnalysisStep(
                input_mode=state.input_mode, document=state.document, options=state.options
            )
        elif isinstance(state, PreviewStep):
            if state.editing is not None:
                raise WizardStateError("finish editing before leaving the preview")
            self.state = LayoutOptionsStep(document=state.document, options=state.options)
        elif isinstance(state, GenerateStep):
            self.state = PreviewStep(
                document=state.document, options=state.options, pages=state.pages
            )
        else:
            raise WizardStateError("already at the first step")

    @property
    def pages(self) -> list[Page]:
        if isinstance(self.state, (PreviewStep, GenerateStep)):
            return self.state.pages
        return []

    def render(self, settings: Settings) -> Path:
        """Write the print-ready document. Only allowed once generation is complete."""
        if not self.can_print:
            raise WizardStateError("generate every image before printing")
        return stage5_render.run(settings, self.state.pages, self.state.cursor)

    # -- Helpers ---------------------------------------------------------------

    def _request_image(self, prompt: str, error_url: str) -> str:
        self.loading = True
        try:
            return self.gateways.generate_image(prompt)
        except Exception as exc:
            logger.warning("Image generation failed for %r: %s", prompt, exc)
            return error_url
        finally:
            self.loading = False

    def _event(self, step: str, message: str, payload: dict | None = None) -> WizardEvent:
        state = self.state
        total = slot_count(state.pages)
        done = rendered_count(state.pages, state.cursor)
        progress = 1.0 if state.cursor.complete or not total else done / total
        return WizardEvent(step=step, progress=progress, message=message, payload=payload)

    def _expect(self, variant: type):
        if not isinstance(self.state, variant):
            raise WizardStateError(
                f"{variant.__name__} action not allowed in step {self.state.step!r}"
            )
        return self.state

    @staticmethod
    def _expect_editing(state: PreviewStep) -> PageEditing:
        if state.editing is None:
            raise WizardStateError("no page is being edited")
        return state.editing


def _recommended_options(document: Document) -> LayoutOptions:
    """Layout options seeded from a new document's recommendations, one page."""
    return LayoutOptions(
        orientation=document.recommended_orientation,
        images_per_page=document.recommended_images_per_page,
        layout_style=document.recommended_style,
    )


def _find_page(pages: list[Page], page_id: int) -> Page:
    for page in pages:
        if page.id == page_id:
            return page
    raise WizardStateError(f"unknown page {page_id}")


def _updated(options: BaseModel, name: str, value):
    if name not in type(options).model_fields:
        raise ValueError(f"unknown option {name!r}")
    try:
        return type(options).model_validate({**options.model_dump(), name: value})
    except ValidationError as exc:
        raise ValueError(f"invalid value for {name!r}: {value!r}") from exc
