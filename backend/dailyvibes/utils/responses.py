from __future__ import annotations

from typing import Any, Dict, Optional

from flask import jsonify


def ok(data: Optional[Dict[str, Any]] = None, message: Optional[str] = None, status: int = 200, **top_level):
    """Success envelope: ``{"success": true, "message"?, "data"?}``.

    ``top_level`` keys are merged next to ``data`` for the few endpoints the
    mobile app reads flat (e.g. ``unreadCount``).
    """
    body: Dict[str, Any] = {"success": True}
    if message:
        body["message"] = message
    if data is not None:
        body["data"] = data
    body.update(top_level)
    return jsonify(body), status
