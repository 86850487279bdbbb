"""
Create authenticated sessions for access to GitHub as an App.

A GitHub App authenticates in two steps: a short-lived JWT signed with the
App's private key identifies the App itself, and is exchanged for an
installation access token that acts on one account's repositories.
"""

from __future__ import annotations

import base64
import dataclasses
import json
import logging
from typing import Optional

import arrow
import requests
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from urlobject import URLObject

from robot_webhooks.utils import log_check_response, patchable_timer

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_ACCEPT = "application/vnd.github+json"


class BaseUrlSession(requests.Session):
    """
    A requests Session class that applies a base URL to the requested URL.
    """
    def __init__(self, base_url=GITHUB_API_URL):
        super().__init__()
        self.base_url = URLObject(base_url)

    def request(self, method, url, data=None, headers=None, **kwargs):
        return super().request(
            method=method,
            url=self.base_url.relative(url),
            data=data,
            headers=headers,
            **kwargs
        )


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def create_app_jwt(app_id, private_key: str, now: Optional[int] = None) -> str:
    """
    Create the JWT that authenticates as the GitHub App itself.

    The token is backdated a minute to allow for clock drift, and expires
    after nine minutes, inside GitHub's ten-minute limit.

    Arguments:
        app_id: the numeric id of the App.
        private_key: the App's PEM-encoded RSA private key.
        now: the current time as a Unix timestamp, for testing.

    """
    if now is None:
        now = int(patchable_timer())
    header = {"alg": "RS256", "typ": "JWT"}
    claims = {
        "iat": now - 60,
        "exp": now + 540,
        "iss": str(app_id),
    }
    signing_input = ".".join(
        _base64url(json.dumps(part, separators=(",", ":")).encode("utf-8"))
        for part in (header, claims)
    ).encode("ascii")
    key = serialization.load_pem_private_key(private_key.encode("utf-8"), password=None)
    signature = key.sign(signing_input, padding.PKCS1v15(), hashes.SHA256())   # type: ignore[union-attr,call-arg]
    return f"{signing_input.decode('ascii')}.{_base64url(signature)}"


def get_app_session(app_id, private_key: str) -> BaseUrlSession:
    """
    Get a session authenticated as the App, for the /app endpoints.
    """
    session = BaseUrlSession()
    session.headers["Accept"] = GITHUB_ACCEPT
    session.headers["Authorization"] = f"Bearer {create_app_jwt(app_id, private_key)}"
    session.trust_env = False   # prevent reading the local .netrc
    return session


def get_installation_session(token: str) -> BaseUrlSession:
    """
    Get a session authenticated as one installation of the App.
    """
    session = BaseUrlSession()
    session.headers["Accept"] = GITHUB_ACCEPT
    session.headers["Authorization"] = f"token {token}"
    session.trust_env = False   # prevent reading the local .netrc
    return session


@dataclasses.dataclass(frozen=True)
class InstallationToken:
    """An installation access token, and when GitHub will stop honoring it."""
    token: str
    expires_at: Optional[float] = None

    def __repr__(self):
        # Keep the secret out of logs and tracebacks.
        return f"InstallationToken(token='***', expires_at={self.expires_at!r})"


class TokenIssuer:
    """
    Exchange an App JWT for installation access tokens.

    Instances are callable with an installation id, which is the shape the
    credential cache expects of its issuer.
    """

    def __init__(self, app_id, private_key: str):
        self.app_id = app_id
        self.private_key = private_key

    def __call__(self, installation_id: int) -> InstallationToken:
        session = get_app_session(self.app_id, self.private_key)
        logger.debug(f"Requesting an access token for installation {installation_id}")
        resp = session.post(f"/app/installations/{installation_id}/access_tokens")
        log_check_response(resp)
        data = resp.json()
        expires_at = data.get("expires_at")
        return InstallationToken(
            token=data["token"],
            expires_at=arrow.get(expires_at).timestamp() if expires_at else None,
        )
