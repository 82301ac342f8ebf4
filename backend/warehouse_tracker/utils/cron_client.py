from __future__ import annotations

import os

import requests


def _secret() -> str:
    return os.getenv("CRON_SECRET_KEY", "").strip()


def _base_url() -> str:
    return (os.getenv("WAREHOUSE_API_URL") or "http://localhost:5000").rstrip("/")


def trigger_daily_utilization(base_url: str | None = None, secret: str | None = None, timeout: int = 20) -> dict:
    """Ask a running backend to write today's utilization snapshot."""
    secret = (secret if secret is not None else _secret()).strip()
    if not secret:
        return {"ok": False, "error": "CRON_SECRET_KEY not set"}
    url = f"{(base_url or _base_url()).rstrip('/')}/api/cron/daily-utilization"
    headers = {"Authorization": f"Bearer {secret}"}
    try:
        r = requests.post(url, headers=headers, timeout=timeout)
        j = r.json() if r.content else {}
        if 200 <= r.status_code < 300:
            return {"ok": True, "status_code": r.status_code, "message": j.get("message", "")}
        return {"ok": False, "status_code": r.status_code, "error": j.get("error") or f"HTTP {r.status_code}"}
    except Exception as e:
        return {"ok": False, "error": str(e)}
