from robot_webhooks import settings


class DefaultConfig:
    SECRET_KEY = settings.FLASK_SECRET_KEY
    GITHUB_WEBHOOKS_SECRET = settings.WEBHOOK_SECRET
    GITHUB_APP_ID = settings.APP_ID
    GITHUB_PRIVATE_KEY = settings.PRIVATE_KEY
    WEBHOOK_PATH = settings.WEBHOOK_PATH
    CREDENTIAL_TTL = settings.CREDENTIAL_TTL
    HANDLER_WORKERS = settings.HANDLER_WORKERS
    APPS = settings.APPS

    def __init__(self):
        # Keys pasted into environment variables often have their newlines
        # escaped.
        if self.GITHUB_PRIVATE_KEY and "\\n" in self.GITHUB_PRIVATE_KEY:
            self.GITHUB_PRIVATE_KEY = self.GITHUB_PRIVATE_KEY.replace("\\n", "\n")


class DevelopmentConfig(DefaultConfig):
    DEBUG = True
    GITHUB_WEBHOOKS_SECRET = settings.WEBHOOK_SECRET or "development"


class TestingConfig(DefaultConfig):
    TESTING = True
    GITHUB_WEBHOOKS_SECRET = "development"
    GITHUB_APP_ID = 1
    APPS = []
