"""
Unit tests for the document stores and repositories.
"""

import json
from datetime import datetime, timedelta

import pytest

from src.app.fallback import build_fallback_problem
from src.core.domain.models import (
    InterviewRound,
    PromptKind,
    RoundSession,
    SessionStatus,
    Simulation,
    SimulationStatus,
)
from src.core.exceptions import DocumentExistsError, PersistenceError
from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository
from src.infra.persistence.store import InMemoryDocumentStore, JsonDocumentStore


@pytest.fixture(params=["memory", "json"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return JsonDocumentStore(tmp_path / "store")


def make_session(session_id="s1", started_at=None, **overrides):
    fields = dict(
        session_id=session_id,
        user_id="user-1",
        simulation_id="sim-1",
        round_name="DSA Round",
        round_index=0,
        round_type=PromptKind.DSA,
        problems=[build_fallback_problem(PromptKind.DSA, 0), build_fallback_problem(PromptKind.DSA, 1)],
        company_name="Google",
        role_level="Senior Frontend Engineer",
        started_at=started_at or datetime(2024, 5, 1, 10, 0, 0),
    )
    fields.update(overrides)
    return RoundSession(**fields)


# =============================================================================
# Document Stores
# =============================================================================

class TestDocumentStores:
    """Behaviour shared by both store implementations."""

    def test_set_then_get(self, any_store):
        any_store.set("things", "a", {"value": 1})

        assert any_store.get("things", "a") == {"value": 1}

    def test_get_missing_returns_none(self, any_store):
        assert any_store.get("things", "missing") is None

    def test_set_replaces_whole_document(self, any_store):
        any_store.set("things", "a", {"value": 1, "old": True})
        any_store.set("things", "a", {"value": 2})

        assert any_store.get("things", "a") == {"value": 2}

    def test_create_refuses_existing_key(self, any_store):
        any_store.create("things", "a", {"value": 1})

        with pytest.raises(DocumentExistsError):
            any_store.create("things", "a", {"value": 2})

        assert any_store.get("things", "a") == {"value": 1}

    def test_query_filters_by_equality(self, any_store):
        any_store.set("things", "a", {"owner": "u1", "n": 1})
        any_store.set("things", "b", {"owner": "u2", "n": 2})
        any_store.set("things", "c", {"owner": "u1", "n": 3})

        found = any_store.query("things", {"owner": "u1"})

        assert sorted(d["n"] for d in found) == [1, 3]
        assert len(any_store.query("things")) == 3

    def test_delete(self, any_store):
        any_store.set("things", "a", {"value": 1})

        assert any_store.delete("things", "a") is True
        assert any_store.delete("things", "a") is False
        assert any_store.get("things", "a") is None

    def test_returned_documents_are_copies(self, any_store):
        any_store.set("things", "a", {"items": [1]})

        any_store.get("things", "a")["items"].append(2)

        assert any_store.get("things", "a") == {"items": [1]}


class TestJsonDocumentStore:
    """File-specific behaviour."""

    def test_documents_are_plain_json_files(self, tmp_path):
        store = JsonDocumentStore(tmp_path)
        store.set("things", "a", {"value": 1})

        path = tmp_path / "things" / "a.json"

        assert json.loads(path.read_text(encoding="utf-8")) == {"value": 1}

    def test_no_temp_files_left_behind(self, tmp_path):
        store = JsonDocumentStore(tmp_path)
        store.set("things", "a", {"value": 1})
        store.create("things", "b", {"value": 2})
        with pytest.raises(DocumentExistsError):
            store.create("things", "b", {"value": 3})

        leftovers = [p.name for p in (tmp_path / "things").iterdir() if p.suffix == ".tmp"]

        assert leftovers == []

    def test_keys_are_sanitized(self, tmp_path):
        store = JsonDocumentStore(tmp_path)
        store.set("things", "../escape", {"value": 1})

        assert (tmp_path / "things" / "escape.json").exists()
        assert store.get("things", "../escape") == {"value": 1}

    def test_unusable_key_is_rejected(self, tmp_path):
        with pytest.raises(PersistenceError):
            JsonDocumentStore(tmp_path).set("things", "../", {})

    def test_corrupt_file_is_persistence_error(self, tmp_path):
        store = JsonDocumentStore(tmp_path)
        store.set("things", "a", {"value": 1})
        (tmp_path / "things" / "a.json").write_text("{ nope", encoding="utf-8")

        with pytest.raises(PersistenceError):
            store.get("things", "a")


# =============================================================================
# Repositories
# =============================================================================

class TestRoundSessionRepository:
    """Test suite for RoundSessionRepository."""

    def test_round_trip(self, any_store):
        repo = RoundSessionRepository(any_store)
        session = make_session()
        session.complete(82, "Solid work", when=datetime(2024, 5, 1, 11, 0, 0))

        repo.create(session)
        loaded = repo.find("user-1", "sim-1", "DSA Round")

        assert len(loaded) == 1
        restored = loaded[0]
        assert restored.session_id == "s1"
        assert restored.round_type == PromptKind.DSA
        assert restored.problems == session.problems
        assert restored.status == SessionStatus.COMPLETED
        assert restored.total_score == 82
        assert restored.completed_at == datetime(2024, 5, 1, 11, 0, 0)

    def test_documents_use_wire_names(self, store):
        RoundSessionRepository(store).create(make_session())

        document = store.get("round_sessions", "s1")

        assert document["userId"] == "user-1"
        assert document["roundName"] == "DSA Round"
        assert document["problems"][0]["estimatedTime"]
        assert document["version"] == 1

    def test_find_orders_by_start_time(self, session_repo):
        later = make_session("a-later", started_at=datetime(2024, 5, 2))
        earlier = make_session("z-earlier", started_at=datetime(2024, 5, 1))
        session_repo.create(later)
        session_repo.create(earlier)

        found = session_repo.find("user-1", "sim-1", "DSA Round")

        assert [s.session_id for s in found] == ["z-earlier", "a-later"]

    def test_find_is_scoped_to_the_round_key(self, session_repo):
        session_repo.create(make_session("s1"))
        session_repo.create(make_session("s2", round_name="Machine Coding"))
        session_repo.create(make_session("s3", user_id="user-2"))

        assert [s.session_id for s in session_repo.find("user-1", "sim-1", "DSA Round")] == ["s1"]

    def test_create_refuses_duplicate_id(self, session_repo):
        session_repo.create(make_session())

        with pytest.raises(DocumentExistsError):
            session_repo.create(make_session())

    def test_corrupt_document_is_persistence_error(self, store, session_repo):
        store.set("round_sessions", "bad", {"id": "bad", "userId": "user-1"})

        with pytest.raises(PersistenceError):
            session_repo.list_for_user("user-1")


class TestSimulationRepository:
    """Test suite for SimulationRepository."""

    def test_round_trip(self, any_store):
        repo = SimulationRepository(any_store)
        simulation = Simulation(
            simulation_id="sim-1",
            user_id="user-1",
            company_name="Google",
            role_level="Senior",
            rounds=[InterviewRound(name="DSA Round", focus_areas=["Graphs"])],
        )
        simulation.mark_round_completed(0)

        repo.create(simulation)
        restored = repo.load("sim-1")

        assert restored.rounds == simulation.rounds
        assert restored.completed_rounds == [0]
        assert restored.status == SimulationStatus.COMPLETED
        assert restored.created_at == simulation.created_at

    def test_load_missing_returns_none(self, simulation_repo):
        assert simulation_repo.load("nope") is None

    def test_list_for_user_orders_by_creation(self, simulation_repo):
        now = datetime(2024, 5, 1)
        for i, sim_id in enumerate(["b", "a"]):
            simulation_repo.create(Simulation(
                simulation_id=sim_id,
                user_id="user-1",
                company_name="Acme",
                role_level="Mid",
                created_at=now + timedelta(days=i),
            ))

        assert [s.simulation_id for s in simulation_repo.list_for_user("user-1")] == ["b", "a"]
