"""
A page explaining what is running at this address.
"""

from flask import current_app, render_template

import robot_webhooks


def setup(app):
    routes = app.route("/probot")

    @routes.route("", methods=("GET",))
    def index():
        robot = current_app.extensions["robot"]
        return render_template(
            "probot.html",
            version=robot_webhooks.__version__,
            apps=[loaded.name for loaded in robot.apps],
        )
