"""HTTP service exposing the two gateways.

Endpoints:
- POST /api/analyze-text    — enhance text, suggest image prompts and a layout
- POST /api/generate-image  — generate one image for a prompt
- GET  /health              — health check

Usage:
    python server.py                      # serve on 0.0.0.0:8000
    uvicorn server:app --reload
"""
import logging
from functools import lru_cache

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from pipeline import stage2_analyze, stage4_images
from pipeline.errors import GatewayError, UpstreamError
from settings import Settings

logger = logging.getLogger("server")


@lru_cache
def get_settings() -> Settings:
    return Settings()


async def _json_field(request: Request, name: str):
    """Return body[name], or None when the body is not a JSON object."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body.get(name) if isinstance(body, dict) else None


def create_app() -> FastAPI:
    app = FastAPI(title="Illustrated Pages API")

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=exc.status_code)

    @app.post("/api/analyze-text")
    async def analyze_text(request: Request, settings: Settings = Depends(get_settings)):
        text = await _json_field(request, "text")
        try:
            result = await run_in_threadpool(stage2_analyze.run, settings, text)
        except GatewayError:
            raise
        except Exception as exc:
            logger.exception("Error in analyze-text route: %s", exc)
            raise UpstreamError(stage2_analyze.ANALYSIS_FAILED_MESSAGE) from exc
        return result.to_response()

    @app.post("/api/generate-image")
    async def generate_image(request: Request, settings: Settings = Depends(get_settings)):
        prompt = await _json_field(request, "prompt")
        try:
            result = await run_in_threadpool(stage4_images.run, settings, prompt)
        except GatewayError:
            raise
        except Exception as exc:
            logger.exception("Error in generate-image route: %s", exc)
            raise UpstreamError(str(exc) or stage4_images.GENERATION_FAILED_MESSAGE) from exc
        return result.to_response()

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run("server:app", host="0.0.0.0", port=8000)
