"""
PrepForge - Repositories.

Maps simulations and round sessions to documents in a DocumentStore.
A round session is always written as one whole document, so a reader
sees either no session or a complete one.

Usage:
    sessions = RoundSessionRepository(store)

    sessions.create(session)
    existing = sessions.find(user_id, simulation_id, round_name)
"""

import logging
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from src.core.domain.models import (
    InterviewRound,
    PromptKind,
    RoundSession,
    SessionStatus,
    Simulation,
    SimulationStatus,
)
from src.core.domain.problems import problem_from_document
from src.core.exceptions import PersistenceError
from src.infra.persistence.store import DocumentStore

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class SimulationRepository:
    """Simulation documents, keyed by simulation id."""

    COLLECTION = "simulations"

    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, simulation: Simulation) -> None:
        self._store.create(self.COLLECTION, simulation.simulation_id, self._simulation_to_dict(simulation))
        logger.info(f"Created simulation {simulation.simulation_id} for {simulation.company_name}")

    def save(self, simulation: Simulation) -> None:
        self._store.set(self.COLLECTION, simulation.simulation_id, self._simulation_to_dict(simulation))

    def load(self, simulation_id: str) -> Optional[Simulation]:
        data = self._store.get(self.COLLECTION, simulation_id)
        if data is None:
            return None
        return self._dict_to_simulation(data)

    def list_for_user(self, user_id: str) -> list[Simulation]:
        documents = self._store.query(self.COLLECTION, {"userId": user_id})
        simulations = [self._dict_to_simulation(d) for d in documents]
        return sorted(simulations, key=lambda s: s.created_at)

    # -------------------------------------------------------------------------
    # Serialization Helpers
    # -------------------------------------------------------------------------

    def _simulation_to_dict(self, simulation: Simulation) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "id": simulation.simulation_id,
            "userId": simulation.user_id,
            "companyName": simulation.company_name,
            "roleLevel": simulation.role_level,
            "rounds": [r.to_dict() for r in simulation.rounds],
            "completedRounds": list(simulation.completed_rounds),
            "status": simulation.status.value,
            "totalDuration": simulation.total_duration,
            "createdAt": _iso(simulation.created_at),
            "completedAt": _iso(simulation.completed_at),
        }

    def _dict_to_simulation(self, data: dict) -> Simulation:
        try:
            return Simulation(
                simulation_id=data["id"],
                user_id=data["userId"],
                company_name=data.get("companyName", ""),
                role_level=data.get("roleLevel", ""),
                rounds=[InterviewRound.from_dict(r) for r in data.get("rounds", [])],
                completed_rounds=[int(i) for i in data.get("completedRounds", [])],
                status=SimulationStatus(data.get("status", "active")),
                total_duration=int(data.get("totalDuration", 120)),
                created_at=_parse_time(data.get("createdAt")) or datetime.now(),
                completed_at=_parse_time(data.get("completedAt")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise PersistenceError("Corrupt simulation document", str(e)) from e


class RoundSessionRepository:
    """Round session documents, keyed by session id and found by round key."""

    COLLECTION = "round_sessions"

    def __init__(self, store: DocumentStore):
        self._store = store

    def create(self, session: RoundSession) -> None:
        """Write a new session; raises DocumentExistsError if the id is taken."""
        self._store.create(self.COLLECTION, session.session_id, self._session_to_dict(session))
        logger.debug(f"Saved session {session.session_id} ({len(session.problems)} problems)")

    def save(self, session: RoundSession) -> None:
        self._store.set(self.COLLECTION, session.session_id, self._session_to_dict(session))

    def find(self, user_id: str, simulation_id: str, round_name: str) -> list[RoundSession]:
        """All sessions for a round key, earliest started first."""
        documents = self._store.query(
            self.COLLECTION,
            {"userId": user_id, "simulationId": simulation_id, "roundName": round_name},
        )
        sessions = [self._dict_to_session(d) for d in documents]
        return sorted(sessions, key=lambda s: (s.started_at, s.session_id))

    def list_for_user(self, user_id: str) -> list[RoundSession]:
        documents = self._store.query(self.COLLECTION, {"userId": user_id})
        return sorted(
            (self._dict_to_session(d) for d in documents),
            key=lambda s: s.started_at,
        )

    def delete(self, session_id: str) -> bool:
        deleted = self._store.delete(self.COLLECTION, session_id)
        if deleted:
            logger.info(f"Deleted session: {session_id}")
        return deleted

    # -------------------------------------------------------------------------
    # Serialization Helpers
    # -------------------------------------------------------------------------

    def _session_to_dict(self, session: RoundSession) -> dict:
        return {
            "version": SCHEMA_VERSION,
            "id": session.session_id,
            "userId": session.user_id,
            "simulationId": session.simulation_id,
            "roundName": session.round_name,
            "roundIndex": session.round_index,
            "roundType": session.round_type.value,
            "companyName": session.company_name,
            "roleLevel": session.role_level,
            "problems": [p.to_document() for p in session.problems],
            "currentProblemIndex": session.current_problem_index,
            "status": session.status.value,
            "startedAt": _iso(session.started_at),
            "completedAt": _iso(session.completed_at),
            "totalScore": session.total_score,
            "feedback": session.feedback,
        }

    def _dict_to_session(self, data: dict) -> RoundSession:
        try:
            return RoundSession(
                session_id=data["id"],
                user_id=data["userId"],
                simulation_id=data["simulationId"],
                round_name=data["roundName"],
                round_index=int(data.get("roundIndex", 0)),
                round_type=PromptKind(data["roundType"]),
                problems=[problem_from_document(p) for p in data.get("problems", [])],
                company_name=data.get("companyName", ""),
                role_level=data.get("roleLevel", ""),
                current_problem_index=int(data.get("currentProblemIndex", 0)),
                status=SessionStatus(data.get("status", "active")),
                started_at=_parse_time(data.get("startedAt")) or datetime.now(),
                completed_at=_parse_time(data.get("completedAt")),
                total_score=data.get("totalScore"),
                feedback=data.get("feedback"),
            )
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            raise PersistenceError("Corrupt round session document", str(e)) from e
