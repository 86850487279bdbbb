"""
Exceptions raised by robot_webhooks.
"""


class RobotError(Exception):
    """Base class for errors raised by robot_webhooks itself."""


class NotFoundError(RobotError):
    """A requested GitHub object (file, repo) doesn't exist."""


class RequestFailed(RobotError):
    """An HTTP request to GitHub failed."""


class InvalidConfig(RobotError):
    """A configuration file couldn't be parsed, or isn't a mapping."""


class RepositoryMissing(RobotError):
    """The event payload has no repository to take coordinates from."""


class MissingInstallation(RobotError):
    """The event payload has no installation to authenticate as."""


class InvalidPattern(RobotError, ValueError):
    """An event pattern isn't ``*``, ``name`` or ``name.action``."""


class UnknownPlugin(RobotError, LookupError):
    """No app is registered under the requested name."""
