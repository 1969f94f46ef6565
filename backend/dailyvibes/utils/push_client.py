from __future__ import annotations

import requests


def send_push(
    *,
    gateway_url: str,
    api_key: str,
    device_token: str,
    platform: str,
    title: str,
    body: str,
    timeout: int = 10,
) -> tuple[bool, str]:
    """Deliver one notification to a device through the push gateway.

    The gateway fronts FCM/APNs; ``platform`` tells it which one to use.
    """
    if not gateway_url:
        return False, "PUSH_GATEWAY_URL not set"
    if not device_token:
        return False, "missing device token"

    payload = {
        "to": device_token,
        "platform": (platform or "").strip().lower(),
        "notification": {"title": title, "body": body},
    }
    headers = {"Accept": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    try:
        r = requests.post(gateway_url, json=payload, headers=headers, timeout=timeout)
        if 200 <= r.status_code < 300:
            return True, "sent"
        return False, f"push_http_{r.status_code}"
    except requests.RequestException as e:
        return False, f"push_exception:{e}"
