import json
import urllib.request

from flask import current_app

from models.push_token import PushToken


def send_push_notification(user_id: int, title: str, body: str, data=None):
    """Send to every registered Expo token of a user. Returns (ok, error)."""
    if not current_app.config.get("PUSH_ENABLED", False):
        return False, "Push not configured"

    url = current_app.config.get("EXPO_PUSH_URL")
    access_token = current_app.config.get("EXPO_ACCESS_TOKEN")
    timeout = current_app.config.get("PUSH_TIMEOUT_SECONDS", 10)

    tokens = [t.token for t in PushToken.query.filter_by(user_id=user_id).all()]
    if not tokens:
        return False, "No push tokens"

    messages = [
        {
            "to": token,
            "title": title,
            "body": body,
            "data": {k: str(v) for k, v in (data or {}).items()},
            "sound": "default",
        }
        for token in tokens
    ]

    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"

    req = urllib.request.Request(
        url,
        data=json.dumps(messages).encode("utf-8"),
        headers=headers,
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            if resp.status >= 400:
                return False, f"Push service returned {resp.status}"
        return True, None
    except Exception as exc:
        return False, str(exc)
