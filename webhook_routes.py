import logging

import requests
from flask import Blueprint, request, jsonify

from config import load_settings
from deploybot_services.exceptions import DeploymentTableError
from deploybot_services.preview_deployments import (
    handle_issue_opened,
    handle_preview_deployments_event,
)
from deploybot_services.security import verify_github_signature

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhook", __name__)

WORKFLOW_RUN_ACTIONS = ["in_progress", "completed"]


@webhook_bp.route("/webhook/github", methods=["POST"])
def github_webhook():
    if not verify_github_signature(request):
        logger.warning("Webhook signature check failed")
        return jsonify({"error": "Unauthorized"}), 401

    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({"error": "Expected a JSON payload"}), 400

    event    = request.headers.get("X-GitHub-Event", "")
    action   = payload.get("action")
    delivery = request.headers.get("X-GitHub-Delivery", "")
    logger.info("Webhook received: %s.%s (delivery %s)", event, action, delivery)

    settings = load_settings()

    try:
        # ── workflow_run ─────────────────────────────────────────
        if event == "workflow_run" and action in WORKFLOW_RUN_ACTIONS:
            result = handle_preview_deployments_event(payload, settings=settings)

        # ── issues.opened ────────────────────────────────────────
        elif event == "issues" and action == "opened":
            result = handle_issue_opened(payload, settings=settings)

        elif event == "ping":
            return jsonify({"ok": True, "handled": False, "reason": "ping"})

        else:
            return jsonify({"ok": True, "handled": False, "reason": f"unsupported event {event}.{action}"})

    except DeploymentTableError as e:
        logger.exception("Existing deployment table could not be parsed")
        return jsonify({"error": f"Malformed existing table: {e}"}), 422
    except requests.RequestException as e:
        logger.exception("GitHub API call failed")
        return jsonify({"error": f"GitHub API error: {e}"}), 502

    return jsonify({"ok": True, **result.to_dict()})
