"""
API tests using FastAPI's TestClient.

Production services are swapped for in-memory ones through
``app.dependency_overrides``; rate limiting is switched off.
"""

import json

import pytest
from fastapi.testclient import TestClient

from conftest import EchoKindTextClient
from src.api.app import app
from src.api.routes import Services, get_services, limiter
from src.app.controller import GenerationController
from src.app.dashboard import ProgressAggregator
from src.app.evaluation import SubmissionEvaluator
from src.app.generation import ProblemGenerator
from src.app.rounds import RoundSessionManager
from src.app.selector import PromptSelector


USER_HEADERS = {"X-User-Id": "user-1"}

VERDICT = {
    "score": 88,
    "feedback": "Well structured",
    "strengths": ["Readable"],
    "improvements": ["Add tests"],
}


class ApiTextClient(EchoKindTextClient):
    """Problems for generation prompts, a fixed verdict for evaluation prompts."""

    async def generate(self, prompt: str) -> str:
        if '"strengths"' in prompt:
            return json.dumps(VERDICT)
        return await super().generate(prompt)


@pytest.fixture
def services(session_repo, simulation_repo):
    generator = ProblemGenerator(ApiTextClient())
    selector = PromptSelector()
    return Services(
        manager=RoundSessionManager(GenerationController(generator, selector), session_repo, simulation_repo),
        aggregator=ProgressAggregator(session_repo, simulation_repo),
        evaluator=SubmissionEvaluator(generator, selector),
        selector=selector,
    )


@pytest.fixture
def client(services):
    app.dependency_overrides[get_services] = lambda: services
    limiter.enabled = False
    with TestClient(app) as test_client:
        yield test_client
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def simulation_id(client):
    response = client.post(
        "/api/simulations",
        json={
            "company_name": "Google",
            "role_level": "Senior Frontend Engineer",
            "rounds": [
                {"name": "DSA Round", "duration": "45-60 minutes", "focus_areas": ["Algorithms"]},
                {"name": "Culture Chat", "duration": "20-30 minutes"},
            ],
        },
        headers=USER_HEADERS,
    )
    assert response.status_code == 201
    return response.json()["simulation_id"]


def round_url(simulation_id, round_index, action):
    return f"/api/simulations/{simulation_id}/rounds/{round_index}/{action}"


# =============================================================================
# Health & Metadata
# =============================================================================

class TestMetadata:
    """Test suite for health and prompt version endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "PrepForge"}

    def test_prompt_versions(self, client):
        response = client.get("/api/prompts/versions")

        data = response.json()
        assert response.status_code == 200
        assert [v["version"] for v in data["versions"]] == ["1.0.0", "1.1.0"]
        assert data["latest"] == "1.1.0"
        assert data["active"] == "1.1.0"


# =============================================================================
# Simulations
# =============================================================================

class TestSimulationEndpoints:
    """Test suite for simulation endpoints."""

    def test_create_uses_default_plan(self, client):
        response = client.post(
            "/api/simulations",
            json={"company_name": "Acme", "role_level": "Junior Developer"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 201
        data = response.json()
        assert len(data["rounds"]) == 4
        assert data["status"] == "active"
        assert data["progress_percent"] == 0

    def test_user_header_is_required(self, client):
        response = client.post("/api/simulations", json={"company_name": "Acme", "role_level": "Dev"})

        assert response.status_code == 422

    def test_blank_company_is_rejected(self, client):
        response = client.post(
            "/api/simulations",
            json={"company_name": "", "role_level": "Dev"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 422

    def test_other_user_gets_404(self, client, simulation_id):
        response = client.get(f"/api/simulations/{simulation_id}", headers={"X-User-Id": "intruder"})

        assert response.status_code == 404


# =============================================================================
# Round Sessions
# =============================================================================

class TestRoundEndpoints:
    """Test suite for round session endpoints."""

    def test_start_returns_problems_in_wire_format(self, client, simulation_id):
        response = client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["round_type"] == "dsa"
        assert len(data["problems"]) == 4
        assert data["problems"][0]["type"] == "dsa"
        assert data["problems"][0]["estimatedTime"]
        assert "problemStatement" in data["problems"][0]

    def test_start_twice_resumes(self, client, simulation_id):
        first = client.post(round_url(simulation_id, 1, "start"), headers=USER_HEADERS).json()
        second = client.post(round_url(simulation_id, 1, "start"), headers=USER_HEADERS).json()

        assert first["session_id"] == second["session_id"]

    def test_restart_creates_new_session(self, client, simulation_id):
        first = client.post(round_url(simulation_id, 1, "start"), headers=USER_HEADERS).json()
        second = client.post(round_url(simulation_id, 1, "restart"), headers=USER_HEADERS).json()

        assert first["session_id"] != second["session_id"]

    def test_session_before_start_is_404(self, client, simulation_id):
        response = client.get(round_url(simulation_id, 0, "session"), headers=USER_HEADERS)

        assert response.status_code == 404

    def test_invalid_round_is_400(self, client, simulation_id):
        response = client.post(round_url(simulation_id, 7, "start"), headers=USER_HEADERS)

        assert response.status_code == 400

    def test_advance(self, client, simulation_id):
        client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)

        ok = client.post(round_url(simulation_id, 0, "advance"), json={"problem_index": 3}, headers=USER_HEADERS)
        bad = client.post(round_url(simulation_id, 0, "advance"), json={"problem_index": 4}, headers=USER_HEADERS)

        assert ok.status_code == 200
        assert ok.json()["current_problem_index"] == 3
        assert bad.status_code == 400

    def test_complete_updates_simulation(self, client, simulation_id):
        client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)

        response = client.post(
            round_url(simulation_id, 0, "complete"),
            json={"score": 82, "feedback": "Good pace"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"
        assert response.json()["total_score"] == 82
        simulation = client.get(f"/api/simulations/{simulation_id}", headers=USER_HEADERS).json()
        assert simulation["completed_rounds"] == [0]
        assert simulation["progress_percent"] == 50

    def test_complete_rejects_out_of_range_score(self, client, simulation_id):
        response = client.post(
            round_url(simulation_id, 0, "complete"), json={"score": 150}, headers=USER_HEADERS,
        )

        assert response.status_code == 422

    def test_evaluate_submission(self, client, simulation_id):
        client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)

        response = client.post(
            f"/api/simulations/{simulation_id}/rounds/0/problems/1/evaluate",
            json={"submission": "const rotate = (a, k) => a;", "time_taken": "10 minutes"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 200
        assert response.json() == {**VERDICT, "is_default": False}

    def test_evaluate_unknown_problem_is_400(self, client, simulation_id):
        client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)

        response = client.post(
            f"/api/simulations/{simulation_id}/rounds/0/problems/9/evaluate",
            json={"submission": "code"},
            headers=USER_HEADERS,
        )

        assert response.status_code == 400


# =============================================================================
# Dashboard
# =============================================================================

class TestDashboardEndpoint:
    """Test suite for /api/dashboard/stats."""

    def test_stats_reflect_sessions(self, client, simulation_id):
        client.post(round_url(simulation_id, 0, "start"), headers=USER_HEADERS)
        client.post(round_url(simulation_id, 0, "complete"), json={"score": 90}, headers=USER_HEADERS)

        data = client.get("/api/dashboard/stats", headers=USER_HEADERS).json()

        assert data["totalSessions"] == 1
        assert data["completedSessions"] == 1
        assert data["averageScore"] == 90
        assert data["problemsByType"]["dsa"] == 4
        assert data["currentStreak"] == 1
