"""HTTP entrypoint that triggers place sync batches (Cloud Run friendly)."""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict

from flask import Flask, jsonify, request

from place_sync.core.config import get_settings
from place_sync.jobs.sync_places import run_sync_job

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & executor ----------
app = Flask(__name__)
# One worker so batches never overlap.
_executor = ThreadPoolExecutor(max_workers=1)

_FLAG_FIELDS = ("only_flagged", "force_summary", "force_classify", "force_rating", "skip_kakao", "skip_google")

# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    """Lightweight health endpoint; reads settings only, no DB connection."""
    settings = get_settings()
    return (
        jsonify(
            {
                "status": "ok",
                "batch_limit": settings.batch_limit,
                "generation_enabled": bool(settings.openai_api_key),
                "revision": os.getenv("K_REVISION", "unknown"),
            }
        ),
        200,
    )


@app.post("/sync")
def enqueue_sync() -> Any:
    """
    Enqueue a place sync batch.
    Optional JSON fields: limit (int), only_flagged, force_summary,
    force_classify, force_rating, skip_kakao, skip_google (bool)
    """
    payload: Dict[str, Any] = request.get_json(silent=True) or {}

    job_args: Dict[str, Any] = {}
    limit_raw = payload.get("limit")
    if limit_raw is not None:
        try:
            limit = int(limit_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "limit must be numeric"}), 400
        if limit <= 0:
            return jsonify({"error": "limit must be positive"}), 400
        job_args["limit"] = limit

    for name in _FLAG_FIELDS:
        if name not in payload:
            continue
        value = payload[name]
        if not isinstance(value, bool):
            return jsonify({"error": f"{name} must be a boolean"}), 400
        job_args[name] = value

    logger.info("Queueing place sync job: %s", job_args)
    _executor.submit(_run_job_safe, job_args)

    return jsonify({"data": {"status": "queued"}}), 202


# ---------- Internals ----------


def _run_job_safe(job_args: Dict[str, Any]) -> None:
    try:
        processed = run_sync_job(**job_args)
        logger.info("Sync job finished: processed=%s", processed)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Sync job failed: %s", exc)


def main() -> None:
    """Cloud Run injects PORT (usually 8080); fall back to 8080 locally."""
    env_port = os.getenv("PORT")
    port = int(env_port or 8080)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
