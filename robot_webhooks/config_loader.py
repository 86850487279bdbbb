"""
Read per-repository configuration files from GitHub.

Apps keep their settings in YAML files under a repo's ``.github/``
directory.  Repository content is untrusted, so it is only ever parsed with
``yaml.safe_load``: tags that would construct Python objects are errors.
"""

import base64
import binascii
import copy
import logging
from typing import Any, Mapping, Optional

import yaml

from robot_webhooks.errors import InvalidConfig, NotFoundError
from robot_webhooks.types import ConfigDict
from robot_webhooks.utils import log_check_response

logger = logging.getLogger(__name__)

CONFIG_DIR = ".github"


def fetch_file(session, owner: str, repo: str, path: str) -> str:
    """
    Read the text of a file from the default branch of a repo.

    Arguments:
        session: an authenticated GitHub session.
        `owner`, `repo`: the repository to read from.
        `path`: the path to the file within the repo.

    Returns:
        The decoded text of the file.

    Raises:
        NotFoundError if the file (or repo) doesn't exist.  All other errors
        are raised as RequestFailed.
    """
    url = f"/repos/{owner}/{repo}/contents/{path}"
    logger.debug(f"Grabbing file from: {owner}/{repo}/{path}")
    resp = session.get(url)
    if resp.status_code == 404:
        raise NotFoundError(f"No such file: {owner}/{repo}/{path}")
    log_check_response(resp)
    data = resp.json()
    if not isinstance(data, dict) or data.get("type", "file") != "file":
        # Directories come back as a list of entries.
        raise InvalidConfig(f"{owner}/{repo}/{path} is not a file")
    encoding = data.get("encoding", "base64")
    if encoding != "base64":
        raise InvalidConfig(f"Can't decode {owner}/{repo}/{path}: unexpected encoding {encoding!r}")
    try:
        return base64.b64decode(data.get("content") or "").decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as exc:
        raise InvalidConfig(f"Can't decode {owner}/{repo}/{path}: {exc}") from exc


def parse_config(text: str, source: str = "<config>") -> ConfigDict:
    """
    Parse YAML text into a configuration mapping.

    An empty document is an empty mapping.  Malformed YAML, tags the safe
    loader doesn't know, and documents that aren't mappings all raise
    InvalidConfig.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise InvalidConfig(f"Invalid YAML in {source}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidConfig(f"Config in {source} should be a mapping, not {type(data).__name__}")
    return data


def deep_merge(defaults: Mapping[str, Any], loaded: Mapping[str, Any]) -> ConfigDict:
    """
    Merge `loaded` over `defaults`, recursing into nested mappings.

    Values from `loaded` always win.  Defaults only fill in keys that
    `loaded` doesn't have.  Neither argument is changed.
    """
    merged = copy.deepcopy(dict(defaults))
    for key, value in loaded.items():
        default = merged.get(key)
        if isinstance(default, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(default, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(
    session,
    owner: str,
    repo: str,
    file_name: str,
    default_config: Optional[Mapping[str, Any]] = None,
) -> Optional[ConfigDict]:
    """
    Load ``.github/<file_name>`` from a repo, merged over `default_config`.

    Returns:
        The merged config.  If the file doesn't exist, a copy of
        `default_config`, or None if no default was given.
    """
    path = f"{CONFIG_DIR}/{file_name}"
    try:
        text = fetch_file(session, owner, repo, path)
    except NotFoundError:
        logger.debug(f"No config file at {owner}/{repo}/{path}")
        if default_config is None:
            return None
        return copy.deepcopy(dict(default_config))

    config = parse_config(text, source=f"{owner}/{repo}/{path}")
    if default_config is None:
        return config
    return deep_merge(default_config, config)
