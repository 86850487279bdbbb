"""
The object handed to every event handler.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from robot_webhooks import config_loader
from robot_webhooks.errors import MissingInstallation, RepositoryMissing
from robot_webhooks.types import ConfigDict, EventDict, RepoCoords, WebhookEvent

if TYPE_CHECKING:
    from robot_webhooks.credentials import CredentialCache

logger = logging.getLogger(__name__)


class Context:
    """
    One event, as seen by one handler.

    Attributes:
        event (WebhookEvent): the event being handled.
        log (logging.Logger): the logger of the app handling it.
    """

    def __init__(self, event: WebhookEvent, credentials: CredentialCache, log: Optional[logging.Logger] = None):
        self.event = event
        self.credentials = credentials
        self.log = log or logger
        self._github = None

    def __repr__(self):
        return f"<Context {self.event} delivery={self.event.delivery_id}>"

    @property
    def name(self) -> str:
        return self.event.name

    @property
    def action(self) -> Optional[str]:
        return self.event.action

    @property
    def payload(self) -> EventDict:
        return self.event.payload

    @property
    def is_bot(self) -> bool:
        """Was the event triggered by a bot account?"""
        return (self.payload.get("sender") or {}).get("type") == "Bot"

    @property
    def github(self):
        """
        A GitHub session authenticated as the installation that sent the event.

        Created on first use, from the shared credential cache.
        """
        if self._github is None:
            installation_id = (self.payload.get("installation") or {}).get("id")
            if installation_id is None:
                raise MissingInstallation(f"No installation in the {self.event.name} event payload")
            self._github = self.credentials.get_client(installation_id)
        return self._github

    def repo(self, **extra: Any) -> RepoCoords:
        """
        The owner and repo of the event's repository, for API calls.

        Keyword arguments are added to the result, and win over the computed
        owner and repo::

            context.repo(path="README.md")
            # {"owner": "octocat", "repo": "hello-world", "path": "README.md"}

        """
        repo = self.payload.get("repository")
        if not repo:
            raise RepositoryMissing(
                "context.repo() is not supported for this webhook event."
            )
        owner = repo.get("owner") or {}
        match owner:
            case {"login": login} if repo.get("name"):
                coords = {"owner": login, "repo": repo["name"]}
            case {"name": name} if repo.get("name"):
                # Push events describe the owner by name, not login.
                coords = {"owner": name, "repo": repo["name"]}
            case _:
                full_name = repo.get("full_name", "")
                owner_name, _, repo_name = full_name.partition("/")
                if not owner_name or not repo_name:
                    raise RepositoryMissing(
                        f"Can't find the owner and name of repository {repo.get('name')!r} in this webhook event."
                    )
                coords = {"owner": owner_name, "repo": repo_name}
        return {**coords, **extra}

    def issue(self, **extra: Any) -> RepoCoords:
        """
        The owner, repo and number of the event's issue or pull request.

        Keyword arguments win over the computed values, as with `repo`.
        """
        payload = self.payload
        thing = payload.get("issue") or payload.get("pull_request") or {}
        number = thing.get("number", payload.get("number"))
        return {**self.repo(number=number), **extra}

    def config(self, file_name: str, default_config: Optional[Mapping[str, Any]] = None) -> Optional[ConfigDict]:
        """
        Read the app's config file from the ``.github`` directory of the repo.

        Arguments:
            file_name: the name of the file, like "myapp.yml".
            default_config: settings to use for anything the file doesn't set.

        Returns:
            The parsed config merged over `default_config`.  If the file
            doesn't exist, `default_config` (or None).

        Raises:
            InvalidConfig if the file isn't valid YAML.
        """
        coords = self.repo()
        return config_loader.load_config(
            self.github, coords["owner"], coords["repo"], file_name, default_config,
        )
