"""
Generic utilities.
"""

import hashlib
import hmac
import time
from typing import Optional

import cachetools.func
import requests
from urlobject import URLObject

from robot_webhooks import logger
from robot_webhooks.errors import RequestFailed


def patchable_timer() -> float:
    """The current time.

    We use time.time as the timer so that freezegun can test it, and in a new
    function so that freezegun's patching will work.  Freezegun doesn't patch
    time.monotonic, and we aren't that picky about the time anyway.
    """
    return time.time()


def log_check_response(response, raise_for_status=True):
    """
    Logs HTTP request and response at debug level and checks if it succeeded.

    Arguments:
        response (requests.Response)
        raise_for_status (bool): if True, call raise_for_status on the response
            also.
    """
    msg = "Request: {0.method} {0.url}: {0.body!r}".format(response.request)
    logger.debug(msg)
    msg = "Response: {0.status_code} {0.reason!r} for {0.url}: {0.content!r}".format(response)
    logger.debug(msg)
    if raise_for_status:
        try:
            response.raise_for_status()
        except Exception as exc:
            req = response.request
            raise RequestFailed(f"HTTP request failed: {req.method} {req.url}. Response body: {response.content}") from exc


SIGNATURE_DIGESTS = {
    "sha1": hashlib.sha1,
    "sha256": hashlib.sha256,
}

def is_valid_payload(secret: Optional[str], signature: Optional[str], payload: bytes) -> bool:
    """
    Ensure payload is valid according to signature.

    Make sure the payload hashes to the signature as calculated using
    the shared secret.

    Arguments:
        secret (str): The shared secret
        signature (str): Signature as calculated by the server, sent in
            the request, like "sha256=abc123..." or "sha1=abc123...".
        payload (bytes): The request payload

    Returns:
        bool: Is the payload legit?
    """
    if not secret or not signature:
        return False
    algorithm, _, _ = signature.partition("=")
    digestmod = SIGNATURE_DIGESTS.get(algorithm)
    if digestmod is None:
        return False
    mac = hmac.new(secret.encode(), msg=payload, digestmod=digestmod)
    digest = f"{algorithm}={mac.hexdigest()}"
    return hmac.compare_digest(digest.encode(), signature.encode())


def paginated_get(url, session=None, limit=None, per_page=100, callback=None, **kwargs):
    """
    Retrieve all objects from a paginated API.

    Assumes that the pagination is specified in the "link" header, like
    Github's v3 API.

    Some GitHub endpoints wrap the list in an object, like
    ``{"repositories": [...]}``.  Pass the key as `obj_name` for those.

    The `limit` describes how many results you'd like returned.  You might get
    more than this, but you won't make more requests to the server once this
    limit has been exceeded.
    """
    obj_name = kwargs.pop("obj_name", None)
    url = URLObject(url).set_query_param('per_page', str(per_page))
    limit = limit or 999999999
    session = session or requests.Session()
    returned = 0
    while url:
        resp = session.get(url, **kwargs)
        log_check_response(resp)
        if callable(callback):
            callback(resp)
        items = resp.json()
        if obj_name:
            items = items[obj_name]
        for item in items:
            yield item
            returned += 1
        url = None
        if resp.links and returned < limit:
            url = resp.links.get("next", {}).get("url", "")


# A list of all the memoized functions, so that `clear_memoized_values` can
# clear them all.
_memoized_functions = []

def memoize_timed(minutes):
    """Cache the value of a function for `minutes` minutes."""
    def _timed(func):
        func = cachetools.func.ttl_cache(ttl=60 * minutes, timer=patchable_timer)(func)
        _memoized_functions.append(func)
        return func
    return _timed

def clear_memoized_values():
    """Clear all the values saved by @memoize_timed, to ensure isolated tests."""
    for func in _memoized_functions:
        func.cache_clear()


def sentry_extra_context(data_dict):
    """Apply the keys and values from data_dict to the Sentry extra context."""
    import sentry_sdk
    scope = sentry_sdk.get_current_scope()
    for key, value in data_dict.items():
        scope.set_extra(key, value)
