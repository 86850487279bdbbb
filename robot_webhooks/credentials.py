"""
A process-wide cache of installation access tokens.

Every app instance shares one CredentialCache.  Tokens are reused until they
are an hour old (or GitHub says they expire sooner), and concurrent requests
for the same installation share a single issuance.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional

import cachetools

from robot_webhooks.auth import BaseUrlSession, InstallationToken, get_installation_session
from robot_webhooks.utils import patchable_timer

logger = logging.getLogger(__name__)

# GitHub installation tokens live for an hour.
DEFAULT_TTL = 60 * 60

# Stop handing out a token this many seconds before GitHub expires it, so
# that a handler has time to use it.
EXPIRY_MARGIN = 60

Issuer = Callable[[int], InstallationToken]


class CredentialCache:
    """
    Installation tokens keyed by installation id.

    Arguments:
        issuer: called with an installation id to mint a new token.  This is
            where the network call happens.
        ttl: seconds to reuse a token for.
        maxsize: the most installations to remember.
        timer: the clock, patchable for tests.

    """

    def __init__(self, issuer: Issuer, ttl: float = DEFAULT_TTL, maxsize: int = 10000,
                 timer: Callable[[], float] = patchable_timer):
        self.issuer = issuer
        self.ttl = ttl
        self._timer = timer
        self._tokens = cachetools.TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._pending: Dict[int, Future] = {}
        self._lock = threading.Lock()

    def _cached(self, installation_id: int) -> Optional[InstallationToken]:
        """The cached token, if it hasn't expired.  Call with the lock held."""
        token = self._tokens.get(installation_id)
        if token is not None and token.expires_at is not None and token.expires_at - EXPIRY_MARGIN <= self._timer():
            # GitHub said this one expires before our TTL is up.
            del self._tokens[installation_id]
            token = None
        return token

    def get_token(self, installation_id: int) -> InstallationToken:
        """
        Get a usable token for `installation_id`, issuing one if needed.

        Only one issuance is ever in flight for an installation.  Callers that
        arrive while it runs wait for it and get the same token, or the same
        exception.  Failures aren't cached: the next call tries again.
        """
        with self._lock:
            token = self._cached(installation_id)
            if token is not None:
                return token
            pending = self._pending.get(installation_id)
            issuing = pending is None
            if issuing:
                pending = self._pending[installation_id] = Future()
        assert pending is not None

        if not issuing:
            logger.debug(f"Waiting for the token being issued for installation {installation_id}")
            return pending.result()

        logger.debug(f"Issuing a token for installation {installation_id}")
        try:
            token = self.issuer(installation_id)
        except BaseException as exc:
            with self._lock:
                del self._pending[installation_id]
            pending.set_exception(exc)
            raise
        with self._lock:
            self._tokens[installation_id] = token
            del self._pending[installation_id]
        pending.set_result(token)
        return token

    def get_client(self, installation_id: int) -> BaseUrlSession:
        """Get a GitHub session authenticated as `installation_id`."""
        return get_installation_session(self.get_token(installation_id).token)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def __contains__(self, installation_id) -> bool:
        with self._lock:
            return self._cached(installation_id) is not None
