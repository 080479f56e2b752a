"""Tests for the local and GitHub object stores."""

import base64
import pytest
from unittest.mock import MagicMock

import requests

from dailylog.domain.errors import ValidationError
from dailylog.storage.object_store import (
    GitHubObjectStore,
    ListingTruncatedError,
    LocalObjectStore,
    ObjectStoreError,
    VersionConflictError,
)


def make_response(status_code=200, payload=None, content=b""):
    """Build a stand-in for requests.Response."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.content = content
    response.text = ""
    response.json.return_value = payload if payload is not None else {}
    return response


@pytest.fixture
def local_store(tmp_path):
    """Local object store rooted in a temporary directory."""
    return LocalObjectStore(tmp_path / "store")


@pytest.fixture
def session():
    """Mocked HTTP session with a real headers dict."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def github(session):
    """GitHub store talking to the mocked session."""
    return GitHubObjectStore(repo="octo/logs", token="secret", session=session)


# Local store

def test_local_put_get(local_store):
    version = local_store.put("logs/2025/09/a.json", b"{}", None, "create")

    stored = local_store.get("logs/2025/09/a.json")
    assert stored.content == b"{}"
    assert stored.version == version
    assert local_store.get("logs/missing.json") is None


def test_local_version_conflicts(local_store):
    version = local_store.put("a.json", b"one", None, "create")

    with pytest.raises(VersionConflictError):
        local_store.put("a.json", b"two", None, "create again")
    with pytest.raises(VersionConflictError):
        local_store.put("a.json", b"two", "stale", "update")

    local_store.put("a.json", b"two", version, "update")
    assert local_store.get("a.json").content == b"two"


def test_local_delete(local_store):
    version = local_store.put("a.json", b"one", None, "create")

    with pytest.raises(VersionConflictError):
        local_store.delete("a.json", "stale", "delete")

    local_store.delete("a.json", version, "delete")
    assert local_store.get("a.json") is None


def test_local_list_objects(local_store):
    for path in ("logs/2025/10/b.json", "logs/2025/09/a.json", "backups/x.json"):
        local_store.put(path, b"{}", None, "create")

    assert local_store.list_objects("logs") == ["logs/2025/09/a.json", "logs/2025/10/b.json"]
    assert local_store.list_objects("logs/2025/10") == ["logs/2025/10/b.json"]
    assert len(local_store.list_objects("")) == 3
    assert local_store.list_objects("nothing") == []


def test_local_ping_creates_root(local_store):
    local_store.ping()
    assert local_store.root.is_dir()


# GitHub store

def test_github_config_validation():
    with pytest.raises(ValidationError) as exc:
        GitHubObjectStore(repo="octo/logs", token="")
    assert exc.value.field == "github.token"

    with pytest.raises(ValidationError) as exc:
        GitHubObjectStore(repo="octo", token="secret")
    assert exc.value.field == "github.repo"


def test_github_sets_auth_headers(github, session):
    assert session.headers["Authorization"] == "Bearer secret"
    assert github.describe() == "github:octo/logs"


def test_github_get(github, session):
    encoded = base64.b64encode(b'{"date": "2025-09-29"}').decode()
    session.request.return_value = make_response(
        payload={"encoding": "base64", "content": encoded, "sha": "abc123"}
    )

    stored = github.get("logs/2025/09/2025-09-29.json")

    assert stored.content == b'{"date": "2025-09-29"}'
    assert stored.version == "abc123"
    method, url = session.request.call_args[0]
    assert method == "GET"
    assert url == "https://api.github.com/repos/octo/logs/contents/logs/2025/09/2025-09-29.json"


def test_github_get_missing(github, session):
    session.request.return_value = make_response(404, {"message": "Not Found"})
    assert github.get("logs/none.json") is None


def test_github_get_large_file(github, session):
    session.request.side_effect = [
        make_response(payload={"encoding": "none", "sha": "big", "download_url": "https://raw/x"}),
        make_response(content=b"large"),
    ]
    stored = github.get("logs/big.json")
    assert stored.content == b"large"
    assert stored.version == "big"


def test_github_put_sends_sha(github, session):
    session.request.return_value = make_response(201, {"content": {"sha": "new"}})

    version = github.put("logs/a.json", b"data", "old", "Update daily log for 2025-09-29")

    assert version == "new"
    body = session.request.call_args[1]["json"]
    assert body["sha"] == "old"
    assert body["message"] == "Update daily log for 2025-09-29"
    assert base64.b64decode(body["content"]) == b"data"


def test_github_put_create_omits_sha(github, session):
    session.request.return_value = make_response(201, {"content": {"sha": "new"}})
    github.put("logs/a.json", b"data", None, "Create daily log for 2025-09-29")
    assert "sha" not in session.request.call_args[1]["json"]


@pytest.mark.parametrize("status_code,message", [
    (409, "logs/a.json does not match abc"),
    (422, "Invalid request. \"sha\" wasn't supplied."),
])
def test_github_put_conflict(github, session, status_code, message):
    session.request.return_value = make_response(status_code, {"message": message})
    with pytest.raises(VersionConflictError):
        github.put("logs/a.json", b"data", "old", "update")


def test_github_put_other_error(github, session):
    session.request.return_value = make_response(500, {"message": "Server Error"})
    with pytest.raises(ObjectStoreError) as exc:
        github.put("logs/a.json", b"data", "old", "update")
    assert not isinstance(exc.value, VersionConflictError)
    assert exc.value.status_code == 500


def test_github_network_error(github, session):
    session.request.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(ObjectStoreError):
        github.get("logs/a.json")


def test_github_list_objects(github, session):
    session.request.return_value = make_response(payload={"tree": [
        {"path": "logs/2025/10/2025-10-01.json", "type": "blob"},
        {"path": "logs/2025/09/2025-09-29.json", "type": "blob"},
        {"path": "logs/2025/09", "type": "tree"},
        {"path": "README.md", "type": "blob"},
    ]})

    assert github.list_objects("logs") == [
        "logs/2025/09/2025-09-29.json", "logs/2025/10/2025-10-01.json"
    ]
    assert session.request.call_args[1]["params"] == {"recursive": "1"}


def test_github_list_truncated_raises(github, session):
    session.request.return_value = make_response(payload={"truncated": True, "tree": [
        {"path": "logs/2025/09/2025-09-29.json", "type": "blob"},
    ]})
    with pytest.raises(ListingTruncatedError):
        github.list_objects("logs")


def test_github_list_empty_repository(github, session):
    session.request.return_value = make_response(409, {"message": "Git Repository is empty."})
    assert github.list_objects("logs") == []


def test_github_ping(github, session):
    session.request.return_value = make_response(401, {"message": "Bad credentials"})
    with pytest.raises(ObjectStoreError) as exc:
        github.ping()
    assert "401" in str(exc.value)
