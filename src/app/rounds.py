"""
PrepForge - Round Session Manager.

Owns the lifecycle of round sessions:

    Absent --start--> Active --complete--> Completed
    Active/Completed --restart--> (deleted) --> Active

Starting a round is idempotent per (user, simulation, round name): the
first call generates every problem slot and persists the session in one
write; later calls return that same session.
"""

import asyncio
import logging
import math
import re
import uuid
import weakref
from collections.abc import Callable, Hashable, Sequence
from datetime import datetime
from typing import Optional

from src.app.controller import GenerationController
from src.app.fallback import build_fallback_problem
from src.core.binder import interview_variables
from src.core.config import Settings, get_settings
from src.core.domain.models import (
    InterviewRound,
    PromptKind,
    RoundSession,
    Simulation,
)
from src.core.domain.problems import ProblemBase
from src.core.exceptions import (
    InvalidProblemIndexError,
    InvalidRoundError,
    InvalidSessionStateError,
    SessionNotFoundError,
    SimulationNotFoundError,
)
from src.core.prompts import DEFAULT_ROUNDS
from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository

logger = logging.getLogger(__name__)

DURATION_PATTERN = re.compile(r"(\d+)-(\d+)\s*(hours?|minutes?)", re.IGNORECASE)
MINUTES_PER_SLOT = 15
DEFAULT_ROUND_MINUTES = 30
DEFAULT_TOTAL_MINUTES = 120


# -----------------------------------------------------------------------------
# Round Helpers
# -----------------------------------------------------------------------------

def parse_duration_minutes(text: str | None, default: Optional[int] = None) -> Optional[int]:
    """Upper bound of a "45-60 minutes" / "1-2 hours" range, in minutes."""
    match = DURATION_PATTERN.search(text or "")
    if not match:
        return default
    upper = int(match.group(2))
    unit = match.group(3).lower()
    return upper * 60 if unit.startswith("hour") else upper


def slot_count_from_duration(duration: str | None) -> int:
    """One problem slot per 15 minutes of the range's upper bound, at least one."""
    minutes = parse_duration_minutes(duration)
    if minutes is None:
        return 1
    return max(1, math.floor(minutes / MINUTES_PER_SLOT))


def determine_round_kind(round_: InterviewRound) -> PromptKind:
    """Classify a round by keywords in its name, then its focus areas."""
    name = round_.name.lower()
    areas = [area.lower() for area in round_.focus_areas]

    def any_area(*keywords: str) -> bool:
        return any(k in area for area in areas for k in keywords)

    if "dsa" in name or "algorithm" in name or any_area("algorithm", "data structure"):
        return PromptKind.DSA
    if "coding" in name or "machine" in name or any_area("react", "component"):
        return PromptKind.MACHINE_CODING
    if "design" in name or "system" in name or any_area("architecture", "design"):
        return PromptKind.SYSTEM_DESIGN
    return PromptKind.THEORY


def time_distribution(total_minutes: int, slots: int) -> list[int]:
    """Even split of a round's minutes; the last slot takes the remainder."""
    if slots <= 1:
        return [total_minutes]
    base = total_minutes // slots
    return [base] * (slots - 1) + [total_minutes - base * (slots - 1)]


def _round_key(user_id: str, simulation_id: str, round_name: str) -> str:
    return f"{user_id}/{simulation_id}/{round_name}"


def _lock_for(table: weakref.WeakValueDictionary, key: Hashable) -> asyncio.Lock:
    """The lock for a key; entries vanish once no task holds or awaits the lock."""
    lock = table.get(key)
    if lock is None:
        lock = asyncio.Lock()
        table[key] = lock
    return lock


# -----------------------------------------------------------------------------
# Manager
# -----------------------------------------------------------------------------

class RoundSessionManager:
    """
    Creates, resumes, restarts and completes round sessions.

    Session creation is serialized per round key with an asyncio.Lock;
    slots inside one session are generated concurrently.
    """

    def __init__(
        self,
        controller: GenerationController,
        sessions: RoundSessionRepository,
        simulations: SimulationRepository,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._controller = controller
        self._sessions = sessions
        self._simulations = simulations
        self._settings = settings or get_settings()
        self._clock = clock
        self._round_locks: weakref.WeakValueDictionary[tuple[str, str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._simulation_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    # -------------------------------------------------------------------------
    # Simulations
    # -------------------------------------------------------------------------

    def create_simulation(
        self,
        user_id: str,
        company_name: str,
        role_level: str,
        rounds: Sequence[InterviewRound | dict] | None = None,
        estimated_duration: str | None = None,
    ) -> Simulation:
        """Persist a new simulation; the default round plan is used when none is given."""
        plan = [
            r if isinstance(r, InterviewRound) else InterviewRound.from_dict(r)
            for r in (rounds or DEFAULT_ROUNDS)
        ]
        simulation = Simulation(
            simulation_id=uuid.uuid4().hex,
            user_id=user_id,
            company_name=company_name,
            role_level=role_level,
            rounds=plan,
            total_duration=parse_duration_minutes(estimated_duration, DEFAULT_TOTAL_MINUTES),
            created_at=self._clock(),
        )
        self._simulations.create(simulation)
        return simulation

    def get_simulation(self, user_id: str, simulation_id: str) -> Simulation:
        """
        Raises:
            SimulationNotFoundError: If absent or owned by another user
        """
        simulation = self._simulations.load(simulation_id)
        if simulation is None or simulation.user_id != user_id:
            raise SimulationNotFoundError(simulation_id)
        return simulation

    def _round(self, simulation: Simulation, round_index: int) -> InterviewRound:
        if not 0 <= round_index < len(simulation.rounds):
            raise InvalidRoundError(round_index, len(simulation.rounds))
        return simulation.round_at(round_index)

    # -------------------------------------------------------------------------
    # Round Lifecycle
    # -------------------------------------------------------------------------

    async def start_round(self, user_id: str, simulation_id: str, round_index: int) -> RoundSession:
        """
        Return the round's session, generating and persisting it on first call.

        Raises:
            SimulationNotFoundError: Unknown simulation for this user
            InvalidRoundError: Round index out of range
            ConfigurationError: Missing template or version
            PersistenceError: The session could not be written
        """
        simulation = self.get_simulation(user_id, simulation_id)
        round_ = self._round(simulation, round_index)

        async with _lock_for(self._round_locks, (user_id, simulation_id, round_.name)):
            existing = self._sessions.find(user_id, simulation_id, round_.name)
            if existing:
                logger.info(f"Resuming session {existing[0].session_id} for round '{round_.name}'")
                return existing[0]
            return await self._create_session(simulation, round_index, round_)

    async def restart_round(self, user_id: str, simulation_id: str, round_index: int) -> RoundSession:
        """Delete every session for the round and start it afresh."""
        simulation = self.get_simulation(user_id, simulation_id)
        round_ = self._round(simulation, round_index)

        async with _lock_for(self._round_locks, (user_id, simulation_id, round_.name)):
            for session in self._sessions.find(user_id, simulation_id, round_.name):
                self._sessions.delete(session.session_id)
            logger.info(f"🔄 Restarting round '{round_.name}' of simulation {simulation_id}")
            return await self._create_session(simulation, round_index, round_)

    async def complete_round(
        self,
        user_id: str,
        simulation_id: str,
        round_index: int,
        score: float,
        feedback: str = "",
    ) -> RoundSession:
        """
        Mark the round's session completed and record it on the simulation.

        Raises:
            SessionNotFoundError: If the round was never started
        """
        simulation = self.get_simulation(user_id, simulation_id)
        round_ = self._round(simulation, round_index)
        now = self._clock()

        async with _lock_for(self._round_locks, (user_id, simulation_id, round_.name)):
            session = self._first_session(user_id, simulation_id, round_.name)
            session.complete(score, feedback, now)
            self._sessions.save(session)

        async with _lock_for(self._simulation_locks, simulation_id):
            # Reload so concurrent completions of other rounds are kept
            simulation = self.get_simulation(user_id, simulation_id)
            simulation.mark_round_completed(round_index, now)
            self._simulations.save(simulation)

        logger.info(
            f"🏁 Completed round '{round_.name}' with score {score} "
            f"({len(simulation.completed_rounds)}/{len(simulation.rounds)} rounds)"
        )
        return session

    async def advance_problem(
        self,
        user_id: str,
        simulation_id: str,
        round_index: int,
        problem_index: int,
    ) -> RoundSession:
        """Move an active session to another problem slot."""
        simulation = self.get_simulation(user_id, simulation_id)
        round_ = self._round(simulation, round_index)

        async with _lock_for(self._round_locks, (user_id, simulation_id, round_.name)):
            session = self._first_session(user_id, simulation_id, round_.name)
            if session.is_completed:
                raise InvalidSessionStateError(session.status.value, "active")
            if not 0 <= problem_index < len(session.problems):
                raise InvalidProblemIndexError(problem_index, len(session.problems))
            session.current_problem_index = problem_index
            self._sessions.save(session)
            return session

    def get_round_session(
        self,
        user_id: str,
        simulation_id: str,
        round_index: int,
    ) -> Optional[RoundSession]:
        """Read the round's session without creating one."""
        simulation = self.get_simulation(user_id, simulation_id)
        round_ = self._round(simulation, round_index)
        sessions = self._sessions.find(user_id, simulation_id, round_.name)
        return sessions[0] if sessions else None

    def require_round_session(self, user_id: str, simulation_id: str, round_index: int) -> RoundSession:
        session = self.get_round_session(user_id, simulation_id, round_index)
        if session is None:
            raise SessionNotFoundError(f"{simulation_id} round {round_index}")
        return session

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _first_session(self, user_id: str, simulation_id: str, round_name: str) -> RoundSession:
        sessions = self._sessions.find(user_id, simulation_id, round_name)
        if not sessions:
            raise SessionNotFoundError(_round_key(user_id, simulation_id, round_name))
        return sessions[0]

    async def _generate_slots(
        self,
        simulation: Simulation,
        round_index: int,
        round_: InterviewRound,
        kind: PromptKind,
    ) -> list[ProblemBase]:
        slots = slot_count_from_duration(round_.duration)
        minutes = parse_duration_minutes(round_.duration, DEFAULT_ROUND_MINUTES)
        times = time_distribution(minutes, slots)
        semaphore = asyncio.Semaphore(max(1, self._settings.MAX_PARALLEL_SLOTS))

        async def run_slot(slot_index: int) -> ProblemBase:
            estimated_time = f"{times[slot_index]} minutes"
            overrides = {
                "difficulty": round_.difficulty,
                "estimatedTime": estimated_time,
                "problemNumber": slot_index + 1,
                "totalProblems": slots,
            }
            if round_.focus_areas:
                overrides["focusAreas"] = ", ".join(round_.focus_areas)

            variables = interview_variables(
                kind,
                company=simulation.company_name,
                role=simulation.role_level,
                round_number=round_index + 1,
                experience_level=simulation.role_level,
                overrides=overrides,
            )

            def fallback(k: PromptKind, index: int, difficulty: str) -> ProblemBase:
                return build_fallback_problem(k, index, difficulty, estimated_time)

            async with semaphore:
                return await self._controller.generate_with_fallback(
                    kind,
                    variables,
                    fallback_factory=fallback,
                    slot_index=slot_index,
                )

        # gather keeps results in slot order whatever the completion order
        return list(await asyncio.gather(*(run_slot(i) for i in range(slots))))

    async def _create_session(
        self,
        simulation: Simulation,
        round_index: int,
        round_: InterviewRound,
    ) -> RoundSession:
        kind = determine_round_kind(round_)
        logger.info(
            f"🎯 Starting round '{round_.name}' ({kind.value}) "
            f"for simulation {simulation.simulation_id}"
        )
        problems = await self._generate_slots(simulation, round_index, round_, kind)

        session = RoundSession(
            session_id=uuid.uuid4().hex,
            user_id=simulation.user_id,
            simulation_id=simulation.simulation_id,
            round_name=round_.name,
            round_index=round_index,
            round_type=kind,
            problems=problems,
            company_name=simulation.company_name,
            role_level=simulation.role_level,
            started_at=self._clock(),
        )
        self._sessions.create(session)
        logger.info(f"✅ Session {session.session_id} ready with {len(problems)} problems")
        return session
