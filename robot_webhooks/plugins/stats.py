"""
Publish how many accounts have installed the App, and the most popular ones.

``GET /probot/stats`` returns::

    {
        "installations": 42,
        "popular": [{"login": "octocat", "stars": 1234}, ...]
    }

Popularity is the number of stars on an account's public repos that the App
can see.  Set DISABLE_STATS to turn this off, and IGNORED_ACCOUNTS to keep
accounts out of the popular list.
"""

import logging
from typing import Dict, List

from flask import jsonify

from robot_webhooks import settings
from robot_webhooks.utils import memoize_timed, paginated_get

logger = logging.getLogger(__name__)

# How many accounts to list as popular.
POPULAR_COUNT = 10


def setup(app):
    if settings.DISABLE_STATS:
        return

    routes = app.route("/probot")

    @routes.route("/stats", methods=("GET",))
    def stats():
        return jsonify(get_stats(app))


def installation_stars(app, installation_id: int) -> int:
    """The total stars of the public repos one installation can see."""
    repos = paginated_get(
        "/installation/repositories",
        session=app.auth(installation_id),
        obj_name="repositories",
    )
    return sum(repo["stargazers_count"] for repo in repos if not repo["private"])


@memoize_timed(minutes=60)
def get_stats(app) -> Dict:
    """
    Count the installations, and find the most popular accounts.

    This makes a request per installation, so it's only recomputed hourly.
    """
    installations = list(paginated_get("/app/installations", session=app.auth()))
    ignored = set(settings.IGNORED_ACCOUNTS)
    popular: List[Dict] = []
    for installation in installations:
        login = installation["account"]["login"]
        if login.lower() in ignored:
            continue
        popular.append({"login": login, "stars": installation_stars(app, installation["id"])})

    popular.sort(key=lambda account: account["stars"], reverse=True)
    logger.info(f"Stats: {len(installations)} installations")
    return {
        "installations": len(installations),
        "popular": popular[:POPULAR_COUNT],
    }
