r"""
Apps the robot can load by name.

Each app is a function taking an
:class:`~robot_webhooks.application.Application`, which registers handlers
and routes on it::

    def setup(app):
        app.on("issues.opened", welcome)

To make an app loadable from the ``APPS`` setting, add it to ``PLUGINS``.
"""

from typing import Callable, Dict

from robot_webhooks.errors import UnknownPlugin

from . import default, stats

# Dict[str, Callable[[Application], None]]: every app, by name.
PLUGINS: Dict[str, Callable] = {
    "default": default.setup,
    "stats": stats.setup,
}

# Loaded after the configured apps, in order.
DEFAULT_APPS = ["stats", "default"]


def resolve(name: str) -> Callable:
    """Get the setup function of the app named `name`."""
    try:
        return PLUGINS[name]
    except KeyError:
        raise UnknownPlugin(f"No app named {name!r}. Known apps: {', '.join(sorted(PLUGINS))}") from None
