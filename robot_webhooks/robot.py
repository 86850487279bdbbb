"""
The top-level dispatcher: every loaded app receives every event.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Union

from flask import Blueprint

from robot_webhooks.application import Application
from robot_webhooks.auth import TokenIssuer
from robot_webhooks.credentials import DEFAULT_TTL, CredentialCache
from robot_webhooks.debug import is_debug, print_long_json
from robot_webhooks.plugins import DEFAULT_APPS, resolve
from robot_webhooks.types import WebhookEvent

logger = logging.getLogger(__name__)

Plugin = Callable[[Application], None]

# Errors whose messages we know how to explain to the person running the robot.
SIGNATURE_ERRORS = {
    "X-Hub-Signature does not match blob signature",
    "No X-Hub-Signature found on request",
}
PRIVATE_KEY_ERRORS = {
    "Could not deserialize key data.",
    "A JSON web token could not be decoded",
}


class Robot:
    """
    The loaded apps, and the credential cache they share.

    Arguments:
        credentials: the process-wide credential cache.
        app_id, private_key: the GitHub App's credentials.
        max_workers: how many handlers each app may run at once.

    """

    def __init__(self, credentials: CredentialCache, app_id=None, private_key: Optional[str] = None, max_workers: int = 8):
        self.credentials = credentials
        self.app_id = app_id
        self.private_key = private_key
        self.max_workers = max_workers
        self.apps: List[Application] = []

    def load(self, plugin: Union[str, Plugin], name: Optional[str] = None) -> Application:
        """
        Load an app, by registry name or as a callable that sets it up.

        `name` names the app's logger and blueprint.  It defaults to the
        registry name, or the name of the callable.
        """
        if isinstance(plugin, str):
            name = name or plugin
            plugin = resolve(plugin)
        else:
            name = name or getattr(plugin, "__name__", "app")
        app = Application(
            self.credentials,
            name=name,
            max_workers=self.max_workers,
            app_id=self.app_id,
            private_key=self.private_key,
        )
        plugin(app)
        self.apps.append(app)
        logger.info(f"Loaded app {name!r}")
        return app

    def setup(self, apps: Iterable[Union[str, Plugin]]) -> None:
        """Load the given apps, followed by the default apps."""
        for plugin in [*apps, *DEFAULT_APPS]:
            self.load(plugin)

    def receive(self, event: WebhookEvent) -> None:
        """
        Deliver `event` to every app, concurrently.

        Raises the first error from an app (in load order) once every app has
        finished with the event.
        """
        logger.debug(f"Webhook received: {event} (delivery {event.delivery_id})")
        if is_debug(__name__):
            print_long_json(f"Payload of {event}", event.payload)
        if not self.apps:
            return
        with ThreadPoolExecutor(max_workers=len(self.apps), thread_name_prefix="robot-app") as executor:
            futures = [executor.submit(app.receive, event) for app in self.apps]
            errors = [future.exception() for future in futures]
        for error in errors:
            if error is not None:
                raise error

    def blueprints(self) -> List[Blueprint]:
        return [app.blueprint for app in self.apps if app.blueprint is not None]

    def error_handler(self, err: BaseException) -> None:
        """Log an error, with advice if it's one we recognize."""
        message = str(err)
        if message in SIGNATURE_ERRORS:
            logger.error(
                "Go to https://github.com/settings/apps/YOUR_APP and verify that the Webhook "
                "secret matches the value of the WEBHOOK_SECRET environment variable."
            )
        elif any(known in message for known in PRIVATE_KEY_ERRORS):
            logger.error(
                "Your private key (usually a .pem file) is not correct. Go to "
                "https://github.com/settings/apps/YOUR_APP and generate a new PEM file."
            )
        else:
            logger.error(f"Error handling webhook: {err}", exc_info=err)


def create_robot(config) -> Robot:
    """Build a Robot, and its credential cache, from Flask config."""
    app_id = config.get("GITHUB_APP_ID")
    private_key = config.get("GITHUB_PRIVATE_KEY")
    credentials = CredentialCache(
        TokenIssuer(app_id, private_key),
        ttl=config.get("CREDENTIAL_TTL", DEFAULT_TTL),
    )
    return Robot(
        credentials,
        app_id=app_id,
        private_key=private_key,
        max_workers=config.get("HANDLER_WORKERS", 8),
    )
