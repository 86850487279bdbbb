"""Automatically run by pytest to set up test infrastructure."""

from pathlib import Path

import pytest
import requests_mock
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

import robot_webhooks
import robot_webhooks.utils
from robot_webhooks.auth import TokenIssuer
from robot_webhooks.credentials import CredentialCache
from robot_webhooks.robot import Robot
from robot_webhooks.types import WebhookEvent

from . import settings as test_settings
from .fake_github import FakeGitHub

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def requests_mocker():
    """Make requests_mock available as a fixture."""
    mocker = requests_mock.Mocker(real_http=False, case_sensitive=True)
    mocker.start()
    try:
        yield mocker
    finally:
        mocker.stop()


@pytest.fixture(autouse=True)
def settings_for_tests(mocker):
    for name, value in vars(test_settings).items():
        if name.isupper():
            mocker.patch(f"robot_webhooks.settings.{name}", value)


@pytest.fixture(autouse=True)
def reset_all_memoized_functions():
    """Clears the values cached by @memoize_timed before each test. Applied automatically."""
    robot_webhooks.utils.clear_memoized_values()


@pytest.fixture(scope="session")
def private_key() -> str:
    """A throwaway RSA key in PEM form, standing in for the App's key."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def fake_github(requests_mocker):
    the_fake_github = FakeGitHub()
    the_fake_github.install_mocks(requests_mocker)
    return the_fake_github


@pytest.fixture
def credentials(private_key):
    """A credential cache that gets tokens from the fake GitHub."""
    return CredentialCache(TokenIssuer(test_settings.APP_ID, private_key))


@pytest.fixture
def robot(credentials, private_key):
    return Robot(credentials, app_id=test_settings.APP_ID, private_key=private_key)


@pytest.fixture
def read_fixture():
    def _read_fixture(*parts):
        return (FIXTURES.joinpath(*parts)).read_text()
    return _read_fixture


@pytest.fixture
def issue_event():
    """An issues.opened event for bkeepers/probot, from installation 1."""
    return WebhookEvent(
        name="issues",
        payload={
            "action": "opened",
            "installation": {"id": 1},
            "issue": {"number": 4},
            "repository": {
                "name": "probot",
                "full_name": "bkeepers/probot",
                "owner": {"login": "bkeepers"},
            },
            "sender": {"login": "bkeepers", "type": "User"},
        },
        delivery_id="72d3162e-cc78-11e3-81ab-4c9367dc0958",
    )
