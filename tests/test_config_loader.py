"""Tests of config_loader."""

import base64

import pytest

from robot_webhooks.auth import get_installation_session
from robot_webhooks.config_loader import deep_merge, fetch_file, load_config, parse_config
from robot_webhooks.errors import InvalidConfig, NotFoundError

CONTENTS_URL = "https://api.github.com/repos/an-org/a-repo/contents/.github/app.yml"


@pytest.fixture
def session():
    return get_installation_session("ghs_sometoken")


def _contents(text, encoding="base64"):
    return {"encoding": encoding, "content": base64.b64encode(text.encode()).decode()}


def test_deep_merge():
    defaults = {"foo": 10, "bar": 7, "baz": 11}
    assert deep_merge(defaults, {"foo": 5}) == {"foo": 5, "bar": 7, "baz": 11}
    assert defaults == {"foo": 10, "bar": 7, "baz": 11}


def test_deep_merge_nested():
    defaults = {
        "labels": {"bug": {"color": "ff0000", "description": "Broken"}, "docs": {"color": "0000ff"}},
        "comment": "Hello",
    }
    loaded = {"labels": {"bug": {"color": "d73a4a"}}, "extra": [1, 2]}
    assert deep_merge(defaults, loaded) == {
        "labels": {"bug": {"color": "d73a4a", "description": "Broken"}, "docs": {"color": "0000ff"}},
        "comment": "Hello",
        "extra": [1, 2],
    }
    assert defaults["labels"]["bug"] == {"color": "ff0000", "description": "Broken"}


def test_deep_merge_loaded_value_replaces_mapping():
    assert deep_merge({"labels": {"bug": "red"}}, {"labels": None}) == {"labels": None}
    assert deep_merge({"labels": "none"}, {"labels": {"bug": "red"}}) == {"labels": {"bug": "red"}}


@pytest.mark.parametrize("text, parsed", [
    ("", {}),
    ("# Just a comment\n", {}),
    ("foo: 5\n", {"foo": 5}),
    ("a:\n  b: [1, 2]\n", {"a": {"b": [1, 2]}}),
])
def test_parse_config(text, parsed):
    assert parse_config(text) == parsed


@pytest.mark.parametrize("text, message", [
    ("- just\n- a list\n", "should be a mapping, not list"),
    ("just a string", "should be a mapping, not str"),
    ("foo: !!python/name:os.system\n", "could not determine a constructor"),
    ("foo: !custom_tag 1\n", "could not determine a constructor"),
    ("foo: [1, 2\n", "Invalid YAML in app.yml"),
])
def test_parse_bad_config(text, message):
    with pytest.raises(InvalidConfig, match=message):
        parse_config(text, source="app.yml")


def test_fetch_file(session, requests_mocker):
    requests_mocker.get(CONTENTS_URL, json=_contents("foo: bar\n"))
    assert fetch_file(session, "an-org", "a-repo", ".github/app.yml") == "foo: bar\n"
    assert requests_mocker.last_request.headers["Authorization"] == "token ghs_sometoken"


def test_fetch_missing_file(session, requests_mocker):
    requests_mocker.get(CONTENTS_URL, status_code=404, json={"message": "Not Found"})
    with pytest.raises(NotFoundError):
        fetch_file(session, "an-org", "a-repo", ".github/app.yml")


def test_fetch_file_with_unknown_encoding(session, requests_mocker):
    requests_mocker.get(CONTENTS_URL, json={"encoding": "none", "content": ""})
    with pytest.raises(InvalidConfig, match="unexpected encoding 'none'"):
        fetch_file(session, "an-org", "a-repo", ".github/app.yml")


def test_load_config_missing_default_is_a_copy(session, requests_mocker):
    requests_mocker.get(CONTENTS_URL, status_code=404)
    default = {"nested": {"value": 1}}
    config = load_config(session, "an-org", "a-repo", "app.yml", default)
    assert config == default
    config["nested"]["value"] = 2
    assert default == {"nested": {"value": 1}}


def test_load_config_merges_nested(session, requests_mocker, read_fixture):
    requests_mocker.get(CONTENTS_URL, json=_contents(read_fixture("config", "nested.yml")))
    default = {"labels": {"bug": {"color": "ff0000", "name": "bug"}}, "comment": "Hi", "close": False}
    assert load_config(session, "an-org", "a-repo", "app.yml", default) == {
        "labels": {"bug": {"color": "d73a4a", "name": "bug"}},
        "comment": "Thanks",
        "close": False,
    }


@pytest.mark.parametrize("listing", [
    [{"type": "file", "name": "app.yml", "path": ".github/app.yml/app.yml"}],
    {"type": "dir", "name": "app.yml", "path": ".github/app.yml"},
    {"type": "submodule", "name": "app.yml", "path": ".github/app.yml"},
])
def test_fetch_something_other_than_a_file(session, requests_mocker, listing):
    requests_mocker.get(CONTENTS_URL, json=listing)
    with pytest.raises(InvalidConfig, match="an-org/a-repo/.github/app.yml is not a file"):
        load_config(session, "an-org", "a-repo", "app.yml")
