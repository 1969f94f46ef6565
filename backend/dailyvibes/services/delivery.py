"""Best-effort live delivery of stored notifications.

A delivery attempt never raises into the caller and never holds up the HTTP
response: with ``PUSH_ASYNC`` on, the push runs on a small thread pool.
"""

from __future__ import annotations

import atexit
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from dailyvibes.services.devices import Endpoint
from dailyvibes.utils.push_client import send_push


def init_delivery(app) -> None:
    if app.config.get("PUSH_ASYNC", True):
        workers = max(int(app.config.get("PUSH_WORKERS") or 1), 1)
        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="push")
        # Pending pushes are dropped at interpreter exit.
        atexit.register(executor.shutdown, wait=False)
        app.extensions["push_executor"] = executor
    else:
        app.extensions["push_executor"] = None


def _deliver(settings: dict, logger, endpoint: Endpoint, title: str, body: str) -> bool:
    try:
        ok, detail = send_push(
            gateway_url=settings["gateway_url"],
            api_key=settings["api_key"],
            device_token=endpoint.device_token,
            platform=endpoint.platform,
            title=title,
            body=body,
            timeout=settings["timeout"],
        )
    except Exception:
        logger.exception("live delivery crashed for user %s", endpoint.user_id)
        return False
    if not ok:
        logger.warning("live delivery failed for user %s: %s", endpoint.user_id, detail)
    return ok


def dispatch(endpoint: Endpoint, title: str, body: str) -> None:
    """Fire and forget one push to ``endpoint``."""
    app = current_app._get_current_object()
    settings = {
        "gateway_url": app.config.get("PUSH_GATEWAY_URL") or "",
        "api_key": app.config.get("PUSH_API_KEY") or "",
        "timeout": int(app.config.get("PUSH_TIMEOUT_SECONDS") or 10),
    }
    if not settings["gateway_url"]:
        app.logger.info("push gateway not configured; live delivery to user %s skipped", endpoint.user_id)
        return

    executor = app.extensions.get("push_executor")
    if executor is None:
        _deliver(settings, app.logger, endpoint, title, body)
        return
    executor.submit(_deliver, settings, app.logger, endpoint, title, body)
