"""Client for the Illustrated Pages HTTP service.

Implements the wizard's Gateways protocol over HTTP, so the controller can
run against a remote server exactly as it runs against the in-process stages.
"""
import logging

import httpx

from models.document import Document, TextAnalysis
from pipeline.errors import GatewayError, UpstreamError
from pipeline.stage4_images import as_data_uri

logger = logging.getLogger(__name__)


class ApiClient:
    def __init__(self, base_url: str, timeout: float = 120.0, client: httpx.Client | None = None):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def analyze_text(self, text: str) -> Document:
        data = self._post("/api/analyze-text", {"text": text})
        return TextAnalysis.model_validate(data).to_document(text)

    def generate_image(self, prompt: str) -> str:
        data = self._post("/api/generate-image", {"prompt": prompt})
        images = data.get("data") or []
        if not images or not images[0].get("b64_json"):
            raise UpstreamError("No image data received")
        return as_data_uri(images[0]["b64_json"])

    def _post(self, path: str, body: dict) -> dict:
        try:
            response = self._client.post(f"{self.base_url}{path}", json=body)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{path} unreachable: {exc}") from exc
        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(f"{path} returned invalid JSON", response.status_code) from exc
        if not response.is_success:
            message = data.get("error") if isinstance(data, dict) else None
            logger.debug("%s failed (%d): %s", path, response.status_code, message)
            raise GatewayError(message or f"{path} failed", response.status_code)
        if not isinstance(data, dict):
            raise UpstreamError(f"{path} returned a non-object body")
        return data
