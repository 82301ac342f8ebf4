from __future__ import annotations

import hmac

from flask import Blueprint, current_app, jsonify, request

from warehouse_tracker.jobs.utilization_snapshot import run_daily_utilization

cron_bp = Blueprint("cron_bp", __name__, url_prefix="/api/cron")


def _bearer_token() -> str | None:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header.replace("Bearer ", "", 1).strip() or None


def _authorized() -> bool:
    secret = (current_app.config.get("CRON_SECRET_KEY") or "").strip()
    token = _bearer_token()
    if not secret or not token:
        return False
    return hmac.compare_digest(token.encode("utf-8"), secret.encode("utf-8"))


@cron_bp.route("/daily-utilization", methods=["GET", "POST"])
def daily_utilization():
    if not _authorized():
        current_app.logger.warning("rejected daily utilization trigger from %s", request.remote_addr)
        return jsonify({"error": "Unauthorized"}), 401

    result = run_daily_utilization()
    if not result.get("ok"):
        return jsonify({"error": "Failed to update daily utilization"}), 500
    return jsonify({"message": "Daily utilization updated successfully"}), 200
