"""Tests for the POST /index endpoint."""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from services import index_pipeline
from services.index_pipeline import RepoPathError
from utils.command_runner import RecordingCommandRunner
from utils.service_config import ServiceConfig


@pytest.fixture
def runner():
    return RecordingCommandRunner()


@pytest.fixture
def client(tmp_path, runner):
    config = ServiceConfig.from_options(str(tmp_path), index_timeout=5.0)
    return TestClient(create_app(config, runner=runner))


def test_index_runs_pipeline(client, runner, tmp_path):
    """A valid request runs all three stages and returns 200 with no body."""
    response = client.post(
        "/index",
        json={"CloneURL": "https://example.com/repository.git", "RepoID": 100},
    )

    assert response.status_code == 200, f"Expected 200, got {response.status_code}: {response.text}"
    assert response.content == b""

    repo_dir = str(tmp_path / "repos")
    bare = str(tmp_path / "repos" / "100.git")
    assert runner.history == [
        ["zoekt-git-clone", "-dest", repo_dir, "-name", "100", "-repoid", "100",
         "https://example.com/repository.git"],
        ["git", "-C", bare, "fetch"],
        ["zoekt-git-index", "-index", str(tmp_path / "index"), bare],
    ]


def test_index_rejects_unknown_field(client, runner):
    """Unknown keys are a decode error, never silently ignored."""
    response = client.post(
        "/index",
        json={"CloneURL": "https://example.com/r.git", "RepoID": 1, "Branch": "main"},
    )

    assert response.status_code == 400
    assert response.text.strip() == "JSON parser error"
    assert response.headers["content-type"].startswith("text/plain")
    assert runner.history == []


@pytest.mark.parametrize(
    "body",
    [
        b"",
        b"{not json",
        b'{"CloneURL": "u", "RepoID": "100"}',
        b'{"CloneURL": 5, "RepoID": 100}',
        b'{"CloneURL": "u", "RepoID": -1}',
        b'{"CloneURL": "u", "RepoID": 4294967296}',
        b"[]",
    ],
)
def test_index_rejects_malformed_bodies(client, runner, body):
    response = client.post("/index", content=body, headers={"content-type": "application/json"})

    assert response.status_code == 400
    assert response.text.strip() == "JSON parser error"
    assert runner.history == []


def test_index_missing_fields_use_zero_values(client, runner):
    """Absent keys decode to empty values, like any other well-formed object."""
    response = client.post("/index", json={"RepoID": 9})

    assert response.status_code == 200
    assert runner.history[0][-1] == ""
    assert runner.history[1][2].endswith("9.git")


def test_index_returns_200_when_stages_fail(tmp_path, monkeypatch):
    """Failed commands are only logged; the caller still gets 200."""
    from utils.command_runner import SubprocessCommandRunner

    monkeypatch.setattr(index_pipeline, "CLONE_PROGRAM", "no-such-clone-tool-for-tests")
    monkeypatch.setattr(index_pipeline, "GIT_PROGRAM", "no-such-git-for-tests")
    monkeypatch.setattr(index_pipeline, "INDEX_PROGRAM", "no-such-index-tool-for-tests")
    config = ServiceConfig.from_options(str(tmp_path), index_timeout=5.0)
    client = TestClient(create_app(config, runner=SubprocessCommandRunner()))

    response = client.post("/index", json={"CloneURL": "https://example.com/r.git", "RepoID": 2})

    assert response.status_code == 200


def test_index_path_error_is_400(client, runner, monkeypatch):
    """Path resolution failure aborts after the clone and maps to 400."""

    def broken_repo_path(repo_dir, repo_id):
        raise RepoPathError("cannot resolve")

    monkeypatch.setattr(index_pipeline, "repo_path_for", broken_repo_path)

    response = client.post("/index", json={"CloneURL": "https://example.com/r.git", "RepoID": 3})

    assert response.status_code == 400
    assert response.text.strip() == "JSON parser error"
    assert [argv[0] for argv in runner.history] == ["zoekt-git-clone"]


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_index_accepts_lower_camel_case_keys(client, runner):
    """Key matching ignores case, so lower-camel-case schedulers are accepted."""
    response = client.post("/index", json={"cloneURL": "https://example.com/r.git", "repoID": 7})

    assert response.status_code == 200, response.text
    assert runner.history[0] == [
        "zoekt-git-clone", "-dest", runner.history[0][2], "-name", "7", "-repoid", "7",
        "https://example.com/r.git",
    ]
