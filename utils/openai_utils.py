"""Shared utilities for the Together API (OpenAI-compatible) integration."""
import json

from openai import OpenAI

from pipeline.errors import ConfigurationError
from settings import Settings

MISSING_KEY_MESSAGE = "Together API key not configured"


def require_api_key(settings: Settings) -> str:
    """Return the configured key or raise ConfigurationError."""
    if not settings.together_api_key:
        raise ConfigurationError(MISSING_KEY_MESSAGE)
    return settings.together_api_key


def together_client(settings: Settings) -> OpenAI:
    """OpenAI SDK client pointed at the Together base URL.

    Retries are disabled: a failed call surfaces immediately to the caller.
    """
    return OpenAI(
        api_key=require_api_key(settings),
        base_url=settings.together_base_url,
        timeout=settings.request_timeout,
        max_retries=0,
    )


def parse_json_object(content: str) -> dict:
    """Parse a completion that should hold one JSON object.

    Tolerates markdown code fences and leading/trailing prose around the
    object. Raises ValueError when no JSON object can be recovered.
    """
    text = content.strip()
    if text.startswith("```"):
        text = text.strip("`")
        if text.lower().startswith("json"):
            text = text[4:]
    start, end = text.find("{"), text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("completion does not contain a JSON object")
    data = json.loads(text[start:end + 1])
    if not isinstance(data, dict):
        raise ValueError("completion JSON is not an object")
    return data
