"""Stage 4: Image generation gateway — one prompt in, one base64 image out.

Each call posts a single prompt to the Together image endpoint with a fixed
model/resolution/step configuration and a freshly drawn seed.

Writes: <scratch>/generated-images/image-<timestamp>.json  (best effort, never read back)
"""
import json
import logging
import random
from pathlib import Path

import httpx
from pydantic import BaseModel

from pipeline.errors import InvalidInputError, UpstreamError
from settings import Settings
from utils.debug_artifacts import timestamp_slug, write_artifact
from utils.openai_utils import require_api_key

logger = logging.getLogger(__name__)

INVALID_PROMPT_MESSAGE = "Invalid prompt provided"
INVALID_RESPONSE_MESSAGE = "Invalid response from Together API"
INVALID_FORMAT_MESSAGE = "Invalid response format from Together API"
INVALID_IMAGE_MESSAGE = "Invalid image data received"
GENERATION_FAILED_MESSAGE = "Failed to generate image"

_SEED_RANGE = 1_000_000


class ImageResult(BaseModel):
    b64_json: str
    saved_to_file: Path

    def to_response(self) -> dict:
        """JSON body of a successful POST /api/generate-image."""
        return {"data": [{"b64_json": self.b64_json}], "savedToFile": str(self.saved_to_file)}

    @property
    def data_uri(self) -> str:
        return as_data_uri(self.b64_json)


def as_data_uri(b64_json: str) -> str:
    return f"data:image/png;base64,{b64_json}"


def run(
    settings: Settings,
    prompt: object,
    rng: random.Random | None = None,
    client: httpx.Client | None = None,
) -> ImageResult:
    """Generate one image for `prompt`.

    Raises ConfigurationError without an API key, InvalidInputError for a
    missing or non-string prompt, and UpstreamError (carrying the upstream
    status where there is one) for any service failure.
    """
    api_key = require_api_key(settings)
    if not prompt or not isinstance(prompt, str):
        raise InvalidInputError(INVALID_PROMPT_MESSAGE)

    rng = rng or random.Random()
    payload = {
        "model": settings.image_model,
        "prompt": prompt,
        "n": 1,
        "steps": settings.image_steps,
        "width": settings.image_width,
        "height": settings.image_height,
        "seed": rng.randrange(_SEED_RANGE),
        "scheduler": "euler_a",
        "guidance_scale": 7.5,
    }
    logger.info("Generating image (seed %d) for prompt: %s", payload["seed"], prompt)

    data = _post_generation(settings, api_key, payload, client)
    b64 = _extract_image(data)

    artifact_path = settings.images_dir / f"image-{timestamp_slug()}.json"
    timestamp = artifact_path.stem.removeprefix("image-")
    write_artifact(
        artifact_path,
        json.dumps({"timestamp": timestamp, "prompt": prompt, "b64_json": b64}, indent=2),
    )
    return ImageResult(b64_json=b64, saved_to_file=artifact_path)


# ---------------------------------------------------------------------------
# Upstream call
# ---------------------------------------------------------------------------

def _post_generation(
    settings: Settings,
    api_key: str,
    payload: dict,
    client: httpx.Client | None,
) -> dict:
    owns_client = client is None
    client = client or _http_client(settings)
    try:
        response = client.post(
            f"{settings.together_base_url.rstrip('/')}/images/generation",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            json=payload,
        )
    except httpx.HTTPError as exc:
        logger.error("Image request failed: %s", exc)
        raise UpstreamError(GENERATION_FAILED_MESSAGE) from exc
    finally:
        if owns_client:
            client.close()

    try:
        data = response.json()
    except ValueError as exc:
        logger.error("Failed to parse Together API response: %s", response.text[:500])
        raise UpstreamError(INVALID_RESPONSE_MESSAGE) from exc

    if not response.is_success:
        logger.error("Together API error response (%d): %s", response.status_code, data)
        message = GENERATION_FAILED_MESSAGE
        if isinstance(data, dict):
            message = data.get("error") or data.get("message") or GENERATION_FAILED_MESSAGE
            if isinstance(message, dict):  # {"error": {"message": ...}}
                message = message.get("message") or GENERATION_FAILED_MESSAGE
        raise UpstreamError(str(message), status_code=response.status_code)
    return data


def _http_client(settings: Settings) -> httpx.Client:
    return httpx.Client(timeout=settings.request_timeout)


def _extract_image(data: object) -> str:
    output = data.get("output") if isinstance(data, dict) else None
    if not isinstance(output, list) or not output:
        logger.error("Invalid response format from Together API: %s", data)
        raise UpstreamError(INVALID_FORMAT_MESSAGE)
    first = output[0]
    if not isinstance(first, str) or not first:
        logger.error("Invalid image data from Together API")
        raise UpstreamError(INVALID_IMAGE_MESSAGE)
    return first
