"""
The view that receives webhook events from GitHub.
"""

import logging

from flask import current_app as app
from flask import Blueprint, request

from robot_webhooks.types import WebhookEvent
from robot_webhooks.utils import is_valid_payload, sentry_extra_context

webhooks_bp = Blueprint('webhooks', __name__)
logger = logging.getLogger(__name__)


@webhooks_bp.route('', methods=('POST',))
def hook_receiver():
    """
    Process incoming GitHub webhook events.

    1.  Make sure the payload hashes to the proper signature. If not,
        reject the request with http status of 403.
    2.  Deliver the event to every loaded app.
    3.  Respond with http status 202, or 500 if any handler failed, so that
        the delivery shows as failed on GitHub and can be redelivered.

    Returns:
        Tuple[str, int]: Message payload and HTTP status code
    """
    signature = request.headers.get("X-Hub-Signature-256") or request.headers.get("X-Hub-Signature")
    secret = app.config.get('GITHUB_WEBHOOKS_SECRET')
    robot = app.extensions["robot"]
    if not is_valid_payload(secret, signature, request.get_data()):
        msg = "Rejecting because signature doesn't match!"
        logger.info(msg)
        if signature:
            robot.error_handler(Exception("X-Hub-Signature does not match blob signature"))
        else:
            robot.error_handler(Exception("No X-Hub-Signature found on request"))
        return msg, 403

    name = request.headers.get("X-GitHub-Event")
    if not name:
        return "No X-GitHub-Event header", 400
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return "Payload must be a JSON object", 400

    event = WebhookEvent(name=name, payload=payload, delivery_id=request.headers.get("X-GitHub-Delivery"))
    repo = (payload.get("repository") or {}).get("full_name")
    who = (payload.get("sender") or {}).get("login", "someone")
    logger.info(f"Incoming GitHub event: {event.name=!s}, {event.action=!r}, {repo=!r}, {who=!r}")

    if event.name == "ping":
        logger.info(f"ping from {repo or who}")
        return "PONG"

    sentry_extra_context({"event": event.name, "delivery": event.delivery_id, "payload": payload})
    try:
        robot.receive(event)
    except Exception as exc:    # pylint: disable=broad-except
        robot.error_handler(exc)
        return "Error handling event", 500
    return "Thank you", 202
