"""
Route events to the handlers an app registers for them.

An Application is one app's view of the robot: its table of handlers and the
`receive` entry point that fans an event out to them.
"""

from __future__ import annotations

import dataclasses
import itertools
import logging
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from flask import Blueprint

from robot_webhooks.auth import get_app_session
from robot_webhooks.context import Context
from robot_webhooks.credentials import CredentialCache
from robot_webhooks.types import Pattern, WebhookEvent, candidate_patterns, parse_pattern

logger = logging.getLogger(__name__)

Handler = Callable[[Context], Any]


@dataclasses.dataclass(frozen=True)
class HandlerSuccess:
    handler: Handler
    value: Any = None
    ok = True


@dataclasses.dataclass(frozen=True)
class HandlerFailure:
    handler: Handler
    error: BaseException
    ok = False


HandlerResult = Union[HandlerSuccess, HandlerFailure]


def raise_first_failure(results: Iterable[HandlerResult]) -> None:
    """
    Raise the error of the first failed handler, if any failed.

    "First" is in registration order, not completion order: every handler
    has already run to completion by the time the results exist.
    """
    for result in results:
        if isinstance(result, HandlerFailure):
            raise result.error


def handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


class Application:
    """
    One loaded app: its handler registrations and its routes.

    Arguments:
        credentials: the credential cache shared by every app in the robot.
        name: used for the app's logger and blueprint.
        max_workers: the most handlers to run at once for one event.
        app_id, private_key: the GitHub App's credentials, for `auth()`.

    """

    def __init__(
        self,
        credentials: CredentialCache,
        name: str = "app",
        max_workers: int = 8,
        app_id=None,
        private_key: Optional[str] = None,
    ):
        self.credentials = credentials
        self.name = name
        self.max_workers = max_workers
        self.app_id = app_id
        self.private_key = private_key
        self.log = logging.getLogger(f"robot_webhooks.apps.{name}")
        # Pattern -> [(registration sequence number, handler), ...]
        self._handlers: Dict[Pattern, List[Tuple[int, Handler]]] = defaultdict(list)
        self._sequence = itertools.count()
        self._blueprint: Optional[Blueprint] = None

    def __repr__(self):
        return f"<Application {self.name!r}>"

    def register(self, pattern: Union[str, Pattern], handler: Handler) -> None:
        """Run `handler` for every event matching `pattern`."""
        parsed = parse_pattern(pattern)
        self._handlers[parsed].append((next(self._sequence), handler))
        self.log.debug(f"Registered {handler_name(handler)} for {parsed}")

    def on(self, patterns, handler: Optional[Handler] = None):
        """
        Register a handler for one or more patterns.

        Can be called directly::

            app.on("issues.opened", welcome)

        or used as a decorator::

            @app.on(["issues.opened", "pull_request.opened"])
            def welcome(context):
                ...

        """
        if isinstance(patterns, (str, bytes)) or not isinstance(patterns, Iterable):
            patterns = [patterns]
        patterns = list(patterns)

        def _register(handler):
            for pattern in patterns:
                self.register(pattern, handler)
            return handler

        if handler is None:
            return _register
        return _register(handler)

    def handlers_for(self, event: WebhookEvent) -> List[Handler]:
        """The handlers that `event` selects, in registration order."""
        matched = [
            entry
            for pattern in candidate_patterns(event)
            for entry in list(self._handlers.get(pattern, ()))
        ]
        return [handler for _, handler in sorted(matched, key=lambda entry: entry[0])]

    def _run_handler(self, handler: Handler, event: WebhookEvent) -> HandlerResult:
        context = Context(event, self.credentials, log=self.log)
        try:
            value = handler(context)
        except Exception as exc:    # pylint: disable=broad-except
            self.log.error(
                f"Handler {handler_name(handler)} failed for {event} (delivery {event.delivery_id})",
                exc_info=exc,
            )
            return HandlerFailure(handler, exc)
        return HandlerSuccess(handler, value)

    def dispatch(self, event: WebhookEvent) -> List[HandlerResult]:
        """
        Run every handler `event` selects, concurrently.

        Each handler gets its own Context.  A failing handler doesn't stop the
        others.  Returns the results in registration order.
        """
        handlers = self.handlers_for(event)
        if not handlers:
            return []
        self.log.debug(f"Dispatching {event} to {', '.join(handler_name(h) for h in handlers)}")
        if len(handlers) == 1:
            return [self._run_handler(handlers[0], event)]
        workers = min(self.max_workers, len(handlers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self.name}-handler") as executor:
            futures = [executor.submit(self._run_handler, handler, event) for handler in handlers]
            return [future.result() for future in futures]

    def receive(self, event: WebhookEvent) -> List[HandlerResult]:
        """
        Deliver `event` to this app.

        Raises the first handler error once every handler has finished.
        """
        results = self.dispatch(event)
        raise_first_failure(results)
        return results

    def route(self, url_prefix: str = "") -> Blueprint:
        """
        The Flask blueprint for this app's own HTTP endpoints.

        Every call returns the same blueprint, so call this before the robot's
        Flask app is created.
        """
        if self._blueprint is None:
            self._blueprint = Blueprint(f"app_{self.name}", __name__, url_prefix=url_prefix or None)
        return self._blueprint

    @property
    def blueprint(self) -> Optional[Blueprint]:
        return self._blueprint

    def auth(self, installation_id: Optional[int] = None):
        """
        Get an authenticated GitHub session.

        With an installation id, the session acts as that installation and
        comes from the shared credential cache.  Without one, it acts as the
        App itself, for the /app endpoints.
        """
        if installation_id is not None:
            return self.credentials.get_client(installation_id)
        return get_app_session(self.app_id, self.private_key)
