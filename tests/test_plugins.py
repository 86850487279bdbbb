"""Tests of the bundled apps."""

import pytest

import robot_webhooks


@pytest.fixture
def installation(fake_github):
    inst = fake_github.make_installation(1, "testing")
    fake_github.make_repo("testing", "secret", installation_id=1, private=True, stargazers_count=1)
    fake_github.make_repo("testing", "public", installation_id=1, stargazers_count=2)
    return inst


def _client(robot):
    return robot_webhooks.create_app(config="testing", robot=robot).test_client()


class TestStats:
    def test_installation_count_and_popular_accounts(self, robot, installation):
        robot.load("stats")
        resp = _client(robot).get("/probot/stats")
        assert resp.status_code == 200
        assert resp.json == {"installations": 1, "popular": [{"login": "testing", "stars": 2}]}

    def test_sorted_by_stars(self, robot, installation, fake_github):
        fake_github.make_installation(2, "popular-org")
        fake_github.make_repo("popular-org", "big", installation_id=2, stargazers_count=500)
        robot.load("stats")
        resp = _client(robot).get("/probot/stats")
        assert resp.json == {
            "installations": 2,
            "popular": [{"login": "popular-org", "stars": 500}, {"login": "testing", "stars": 2}],
        }

    def test_ignores_spammy_accounts(self, robot, fake_github):
        fake_github.make_installation(1, "spammyUser")
        fake_github.make_repo("spammyUser", "spam", installation_id=1, stargazers_count=2)
        robot.load("stats")
        resp = _client(robot).get("/probot/stats")
        assert resp.json == {"installations": 1, "popular": []}
        # Ignored accounts don't need their repositories counted.
        assert fake_github.issued_tokens(1) == []

    def test_computed_at_most_hourly(self, robot, installation, fake_github):
        robot.load("stats")
        client = _client(robot)
        client.get("/probot/stats")
        client.get("/probot/stats")
        assert len(fake_github.requests_made("/app/installations$", "GET")) == 1

    def test_can_be_disabled(self, robot, mocker):
        mocker.patch("robot_webhooks.settings.DISABLE_STATS", True)
        app = robot.load("stats")
        assert app.blueprint is None
        resp = _client(robot).get("/probot/stats")
        assert resp.status_code == 404


def test_default_page(robot):
    robot.setup([lambda app: None])
    resp = _client(robot).get("/probot")
    assert resp.status_code == 200
    page = resp.get_data(as_text=True)
    assert "Welcome to robot_webhooks" in page
    assert f"Version {robot_webhooks.__version__}" in page
    for name in ["&lt;lambda&gt;", "stats", "default"]:
        assert f"<li>{name}</li>" in page
