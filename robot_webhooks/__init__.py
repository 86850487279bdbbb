import logging
import os
import sys

from flask import Flask
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

__version__ = "0.1.0"

log_level = os.environ.get('LOGLEVEL', 'INFO').upper()
logger = logging.getLogger(__name__)
handler = logging.StreamHandler(sys.stderr)
handler.setLevel(log_level)
logger.addHandler(handler)
logger.setLevel(log_level)

# urllib3 logs every connection at debug level, quiet it.
logging.getLogger("urllib3").setLevel("WARN")


def expand_config(name=None):
    if not name:
        name = "default"
    return "robot_webhooks.config.{classname}Config".format(
        classname=name.capitalize(),
    )


def create_app(config=None, robot=None):
    """
    Build the Flask app that receives GitHub webhooks.

    Arguments:
        config (str): name of a config class in `robot_webhooks.config`,
            defaulting to $ROBOT_WEBHOOKS_CONFIG, then "default".
        robot (Robot): an already-built robot.  If omitted, one is built
            from the config, with the configured apps loaded.
    """
    if os.environ.get("SENTRY_DSN", ""):
        sentry_sdk.init(integrations=[FlaskIntegration()])

    app = Flask(__name__)
    app.wsgi_app = ProxyFix(app.wsgi_app)   # type: ignore[method-assign]
    config = config or os.environ.get("ROBOT_WEBHOOKS_CONFIG") or "default"
    config_obj = import_string(expand_config(config))()
    app.config.from_object(config_obj)

    if robot is None:
        # Avoid a circular import.
        from robot_webhooks.robot import create_robot
        robot = create_robot(app.config)
        robot.setup(app.config["APPS"])
    app.extensions["robot"] = robot

    from robot_webhooks.views import webhooks_bp
    app.register_blueprint(webhooks_bp, url_prefix=app.config["WEBHOOK_PATH"])
    for blueprint in robot.blueprints():
        app.register_blueprint(blueprint)

    return app
