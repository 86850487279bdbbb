"""Settings read from the environment."""

import os
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

load_dotenv(find_dotenv(usecwd=True))


def read_list_setting(setting_name: str) -> List[str]:
    """Read a comma-separated list from a setting.

    Blank items are dropped, so an empty or missing setting is ``[]``.
    """
    value = os.environ.get(setting_name, "")
    return [item.strip() for item in value.split(",") if item.strip()]


def read_bool_setting(setting_name: str) -> bool:
    return os.environ.get(setting_name, "").lower() in {"1", "true", "yes", "on"}


def read_private_key() -> Optional[str]:
    """The GitHub App's PEM private key, from PRIVATE_KEY or PRIVATE_KEY_PATH."""
    key = os.environ.get("PRIVATE_KEY")
    if key:
        return key
    key_path = os.environ.get("PRIVATE_KEY_PATH")
    if key_path:
        with open(key_path) as f:
            return f.read()
    return None


FLASK_SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "secrettoeveryone")

# The numeric id of the GitHub App, shown on its settings page.
APP_ID = os.environ.get("APP_ID")

PRIVATE_KEY = read_private_key()

WEBHOOK_SECRET = os.environ.get("WEBHOOK_SECRET")

WEBHOOK_PATH = os.environ.get("WEBHOOK_PATH", "/")

# Registry names of the apps to load, in addition to the default apps.
APPS = read_list_setting("APPS")

# How long an installation token is reused, in seconds.
CREDENTIAL_TTL = int(os.environ.get("CREDENTIAL_TTL", 60 * 60))

# The most handlers an app will run at once for one event.
HANDLER_WORKERS = int(os.environ.get("HANDLER_WORKERS", 8))

DISABLE_STATS = read_bool_setting("DISABLE_STATS")

# Accounts left out of the stats app's popular list.
IGNORED_ACCOUNTS = [login.lower() for login in read_list_setting("IGNORED_ACCOUNTS")]
