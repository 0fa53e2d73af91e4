"""Best-effort diagnostic files written by the gateways.

These files are never read back. A failed write is logged and ignored so it
can never fail the request that produced it.
"""
import logging
from datetime import datetime, timezone
from pathlib import Path

logger = logging.getLogger(__name__)


def timestamp_slug(now: datetime | None = None) -> str:
    """ISO timestamp with ':' and '.' replaced, safe for filenames.

    e.g. 2026-10-17T09-30-00-123Z
    """
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return iso.replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def write_artifact(path: Path, content: str) -> Path:
    """Write `content` to `path`, creating parent directories. Never raises."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write debug artifact %s: %s", path, exc)
    else:
        logger.debug("Debug artifact written → %s", path)
    return path
