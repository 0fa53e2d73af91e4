"""Stage 2: Text analysis gateway — enhance uploaded text via the completion API.

Sends the text to the Together completions endpoint with a fixed instruction
prompt, parses the JSON answer and normalises it to a Document.

Writes: <scratch>/analysis/analysis-<timestamp>.md  (best effort, never read back)
"""
import logging
import re
from pathlib import Path

from openai import OpenAIError
from pydantic import BaseModel, ValidationError

from models.document import Document, TextAnalysis
from pipeline.errors import InvalidInputError, UpstreamError
from settings import Settings
from utils.debug_artifacts import timestamp_slug, write_artifact
from utils.openai_utils import parse_json_object, require_api_key, together_client

logger = logging.getLogger(__name__)

INVALID_TEXT_MESSAGE = "Invalid text provided"
ANALYSIS_FAILED_MESSAGE = "Failed to analyze text"

_PROMPT_TEMPLATE = """\
<s>[INST] You are an expert document analyzer. Analyze the following text and provide a JSON response with:
1. enhancedText: Enhanced version with proper markdown formatting and structure
2. imagePrompts: Array of 3-4 relevant image prompts that capture key themes (these will be used with FLUX.1 image model)
3. recommendedStyle: Layout style (modern, classic, magazine)
4. recommendedImagesPerPage: Number of images per page (1-3)
5. recommendedOrientation: Page orientation (portrait, landscape)

Text to analyze:
{text}

Provide your response in valid JSON format. [/INST]</s>"""

# Anything other than printable ASCII, newline, carriage return and tab
_NON_PRINTABLE = re.compile(r"[^\x20-\x7E\n\r\t]")


class AnalysisResult(BaseModel):
    document: Document
    saved_to_file: Path

    def to_response(self) -> dict:
        """JSON body of a successful POST /api/analyze-text."""
        doc = self.document
        return {
            "enhancedText": doc.text,
            "imagePrompts": doc.image_prompts,
            "recommendedStyle": doc.recommended_style,
            "recommendedImagesPerPage": doc.recommended_images_per_page,
            "recommendedOrientation": doc.recommended_orientation,
            "savedToFile": str(self.saved_to_file),
        }


def clean_uploaded_text(raw: str) -> str:
    """Blank out binary noise from files read as text (PDF, DOCX)."""
    return _NON_PRINTABLE.sub(" ", raw)


def run(settings: Settings, text: object) -> AnalysisResult:
    """Analyse `text` and return the normalised document.

    Raises ConfigurationError without an API key, InvalidInputError for a
    missing or non-string text, and UpstreamError for any service failure.
    """
    require_api_key(settings)
    if not text or not isinstance(text, str):
        raise InvalidInputError(INVALID_TEXT_MESSAGE)

    analysis = _call_completion_api(text, settings)
    document = analysis.to_document(text)

    artifact_path = settings.analysis_dir / f"analysis-{timestamp_slug()}.md"
    write_artifact(artifact_path, _analysis_markdown(text, document, artifact_path.stem))

    logger.info("Stage 2 complete — %d chars, %d image prompts, style %s",
                len(document.text), len(document.image_prompts), document.recommended_style)
    return AnalysisResult(document=document, saved_to_file=artifact_path)


# ---------------------------------------------------------------------------
# Completion API call
# ---------------------------------------------------------------------------

def _call_completion_api(text: str, settings: Settings) -> TextAnalysis:
    client = together_client(settings)
    try:
        response = client.completions.create(
            model=settings.text_model,
            prompt=_PROMPT_TEMPLATE.format(text=text),
            max_tokens=2000,
            temperature=0.7,
            top_p=0.7,
            extra_body={
                "top_k": 50,
                "repetition_penalty": 1,
                "response_format": {"type": "json_object"},
            },
        )
    except OpenAIError as exc:
        logger.error("Completion request failed: %s", exc)
        raise UpstreamError(ANALYSIS_FAILED_MESSAGE) from exc

    content = response.choices[0].text if response.choices else None
    if not content:
        logger.error("Empty response from Together API")
        raise UpstreamError(ANALYSIS_FAILED_MESSAGE)

    try:
        return TextAnalysis.model_validate(parse_json_object(content))
    except (ValueError, ValidationError) as exc:
        logger.error("Unparseable analysis from Together API: %s", exc)
        raise UpstreamError(ANALYSIS_FAILED_MESSAGE) from exc


# ---------------------------------------------------------------------------
# Debug artifact
# ---------------------------------------------------------------------------

def _analysis_markdown(original: str, document: Document, name: str) -> str:
    prompts = "\n".join(f"- {p}" for p in document.image_prompts)
    return (
        f"# Document Analysis {name}\n\n"
        f"## Original Text\n{original}\n\n"
        f"## Enhanced Text\n{document.text}\n\n"
        f"## Image Prompts\n{prompts}\n\n"
        "## Layout Recommendations\n"
        f"- Style: {document.recommended_style}\n"
        f"- Images per page: {document.recommended_images_per_page}\n"
        f"- Orientation: {document.recommended_orientation}\n"
    )
