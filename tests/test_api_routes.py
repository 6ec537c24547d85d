"""
Unit tests for API routes - health, templates and processing endpoints.
"""
import pytest
from unittest.mock import AsyncMock, Mock, patch

from conftest import utc
from milestone_keeper.github.client import GitHubAPIError
from milestone_keeper.processing.models import MilestoneSpec, ProcessResult, RemoteMilestone
from milestone_keeper.processing.templates import GLOBAL_MILESTONES

PREFIX = "/api/v1"


@pytest.fixture
def github_env(monkeypatch):
    monkeypatch.setenv("GITHUB_TOKEN", "test-token")
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/repo")
    monkeypatch.delenv("REPO_TOKEN", raising=False)
    monkeypatch.delenv("DEBUG_ONLY", raising=False)


@pytest.fixture
def mock_event_logger():
    with patch('milestone_keeper.api.routes.create_event_logger') as mock:
        logger_mock = Mock()
        mock.return_value = logger_mock
        yield logger_mock


@pytest.fixture
def mock_run():
    result = ProcessResult(
        operations_left=98,
        milestones_to_add=[
            MilestoneSpec(title="🍒  Cherry", description="Generated", due_on="2020-05-26T00:00:00Z")
        ],
        closed_milestones=[
            RemoteMilestone(number=3, title="Old", state="open", open_issues=0, closed_issues=4)
        ],
    )
    with patch('milestone_keeper.api.routes.run_milestones', new=AsyncMock(return_value=result)) as mock:
        yield mock


class TestSystemEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Milestone Keeper API"
        assert data["health"] == f"{PREFIX}/health"
        assert data["templates"] == f"{PREFIX}/milestones/templates"
        assert data["process"] == f"{PREFIX}/milestones/process"

    def test_health(self, client):
        response = client.get(f"{PREFIX}/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0"

    def test_unknown_path(self, client):
        assert client.get("/invalid-path").status_code == 404


class TestTemplatesEndpoint:

    def test_lists_every_template(self, client):
        response = client.get(f"{PREFIX}/milestones/templates")
        assert response.status_code == 200
        data = response.json()
        assert [item["id"] for item in data] == list(GLOBAL_MILESTONES)
        assert data[0]["title"] == GLOBAL_MILESTONES[data[0]["id"]].title
        assert all(item["cycle_weeks"] == 16 for item in data)


class TestProcessEndpoint:

    def test_process_uses_repository_from_env(self, client, github_env, mock_run, mock_event_logger):
        response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 200
        data = response.json()
        assert data["repository"] == "octo/repo"
        assert data["operations_left"] == 98
        assert data["debug_only"] is False
        assert data["milestones_to_add"][0]["title"] == "🍒  Cherry"
        assert data["closed_milestones"][0]["number"] == 3

        args, kwargs = mock_run.await_args
        assert args[:2] == ("octo", "repo")
        assert kwargs["debug_only"] is False
        assert kwargs["event_logger"] is mock_event_logger

    def test_process_with_explicit_repo_debug_and_now(self, client, github_env, mock_run, mock_event_logger):
        response = client.post(
            f"{PREFIX}/milestones/process",
            json={"owner": "acme", "repo": "widgets", "debug_only": True, "now": "2020-03-01T00:00:00"},
        )

        assert response.status_code == 200
        assert response.json()["repository"] == "acme/widgets"
        args, kwargs = mock_run.await_args
        assert args[:2] == ("acme", "widgets")
        assert kwargs["debug_only"] is True
        assert kwargs["now"] == utc(2020, 3, 1)

    def test_debug_only_defaults_from_env(self, client, github_env, mock_run, mock_event_logger, monkeypatch):
        monkeypatch.setenv("DEBUG_ONLY", "true")

        response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.json()["debug_only"] is True
        assert mock_run.await_args.kwargs["debug_only"] is True

    def test_missing_token_is_bad_request(self, client, github_env, mock_run, mock_event_logger, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN")

        response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 400
        assert "GITHUB_TOKEN" in response.json()["detail"]
        mock_run.assert_not_awaited()

    def test_invalid_repository_is_bad_request(self, client, github_env, mock_run, mock_event_logger, monkeypatch):
        monkeypatch.setenv("GITHUB_REPOSITORY", "not-a-repo")

        response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 400

    def test_github_failure_is_bad_gateway(self, client, github_env, mock_event_logger):
        failing = AsyncMock(side_effect=GitHubAPIError("GET /repos returned 401: Bad credentials", status_code=401))
        with patch('milestone_keeper.api.routes.run_milestones', new=failing):
            response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 502
        assert "Bad credentials" in response.json()["detail"]


class TestEventLoggerLifecycle:
    """Each request owns its Kafka producer and releases it however the run ends."""

    def test_event_logger_closed_after_successful_run(self, client, github_env, mock_run, mock_event_logger):
        response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 200
        mock_event_logger.close.assert_called_once()

    def test_event_logger_closed_when_github_fails(self, client, github_env, mock_event_logger):
        failing = AsyncMock(side_effect=GitHubAPIError("GET /repos returned 500: Server Error", status_code=500))
        with patch('milestone_keeper.api.routes.run_milestones', new=failing):
            response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 502
        assert response.json()["github_status"] == 500
        mock_event_logger.close.assert_called_once()

    def test_no_event_logger_for_rejected_request(self, client, github_env, mock_run, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN")
        with patch('milestone_keeper.api.routes.create_event_logger') as factory:
            response = client.post(f"{PREFIX}/milestones/process", json={})

        assert response.status_code == 400
        factory.assert_not_called()
