"""
PrepForge - Domain Models.

Defines the core data structures used throughout the application.
Uses dataclasses for sessions and simulations; problem records live in
``problems.py`` as validated pydantic models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from src.core.exceptions import UnknownKindError

if TYPE_CHECKING:
    from src.core.domain.problems import ProblemBase


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class PromptKind(str, Enum):
    """Logical prompt kinds; all but EVALUATION produce problem records."""
    DSA = "dsa"
    THEORY = "theory"
    MACHINE_CODING = "machine-coding"
    SYSTEM_DESIGN = "system-design"
    MOCK_INTERVIEW = "mock-interview"
    EVALUATION = "evaluation"


PROBLEM_KINDS: tuple[PromptKind, ...] = (
    PromptKind.DSA,
    PromptKind.THEORY,
    PromptKind.MACHINE_CODING,
    PromptKind.SYSTEM_DESIGN,
    PromptKind.MOCK_INTERVIEW,
)


class SessionStatus(str, Enum):
    """Round session lifecycle states."""
    ACTIVE = "active"
    COMPLETED = "completed"


class SimulationStatus(str, Enum):
    """Simulation progress states."""
    ACTIVE = "active"
    COMPLETED = "completed"


def parse_kind(value: str | PromptKind) -> PromptKind:
    """Resolve a kind name, accepting underscore spellings."""
    if isinstance(value, PromptKind):
        return value
    normalized = str(value).strip().lower().replace("_", "-")
    try:
        return PromptKind(normalized)
    except ValueError:
        raise UnknownKindError(str(value)) from None


def parse_problem_kind(value: str | PromptKind) -> PromptKind:
    """Resolve a kind that must produce a problem record."""
    kind = parse_kind(value)
    if kind not in PROBLEM_KINDS:
        raise UnknownKindError(kind.value)
    return kind


# -----------------------------------------------------------------------------
# Simulation Models
# -----------------------------------------------------------------------------

@dataclass
class InterviewRound:
    """One stage of a simulation, as described by interview insights."""

    name: str
    duration: str = "30-45 minutes"
    description: str = ""
    focus_areas: list[str] = field(default_factory=list)
    difficulty: str = "medium"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "duration": self.duration,
            "description": self.description,
            "focusAreas": list(self.focus_areas),
            "difficulty": self.difficulty,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InterviewRound:
        return cls(
            name=data["name"],
            duration=data.get("duration", "30-45 minutes"),
            description=data.get("description", ""),
            focus_areas=list(data.get("focusAreas", [])),
            difficulty=data.get("difficulty", "medium"),
        )


@dataclass
class Simulation:
    """A multi-round mock interview and its progress."""

    simulation_id: str
    user_id: str
    company_name: str
    role_level: str
    rounds: list[InterviewRound] = field(default_factory=list)
    completed_rounds: list[int] = field(default_factory=list)
    status: SimulationStatus = SimulationStatus.ACTIVE
    total_duration: int = 120  # Minutes
    created_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    def round_at(self, index: int) -> InterviewRound:
        return self.rounds[index]

    def mark_round_completed(self, index: int, when: datetime | None = None) -> None:
        """Record a completed round and close the simulation after the last one."""
        if index not in self.completed_rounds:
            self.completed_rounds.append(index)
        if self.rounds and len(set(self.completed_rounds)) >= len(self.rounds):
            self.status = SimulationStatus.COMPLETED
            self.completed_at = when or datetime.now()

    @property
    def progress_percent(self) -> float:
        if not self.rounds:
            return 0.0
        return len(self.completed_rounds) / len(self.rounds) * 100


# -----------------------------------------------------------------------------
# Round Session Models
# -----------------------------------------------------------------------------

@dataclass
class RoundSession:
    """Persisted, resumable record of one user's attempt at one round."""

    session_id: str
    user_id: str
    simulation_id: str
    round_name: str
    round_index: int
    round_type: PromptKind
    problems: list[ProblemBase] = field(default_factory=list)
    company_name: str = ""
    role_level: str = ""
    current_problem_index: int = 0
    status: SessionStatus = SessionStatus.ACTIVE
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None
    total_score: float | None = None
    feedback: str | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.user_id, self.simulation_id, self.round_name)

    @property
    def is_completed(self) -> bool:
        return self.status == SessionStatus.COMPLETED

    def complete(self, score: float, feedback: str, when: datetime | None = None) -> None:
        self.status = SessionStatus.COMPLETED
        self.completed_at = when or datetime.now()
        self.total_score = score
        self.feedback = feedback

    def to_summary_dict(self) -> dict[str, Any]:
        """Generate a compact summary for listings."""
        return {
            "session_id": self.session_id,
            "round_name": self.round_name,
            "round_type": self.round_type.value,
            "problem_count": len(self.problems),
            "current_problem_index": self.current_problem_index,
            "status": self.status.value,
            "total_score": self.total_score,
        }


# -----------------------------------------------------------------------------
# Observability
# -----------------------------------------------------------------------------

@dataclass(frozen=True)
class GenerationAttempt:
    """One failed generation attempt for a problem slot."""

    kind: PromptKind
    slot_index: int
    attempt: int
    error_kind: str
    error_class: str
    message: str
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "slot_index": self.slot_index,
            "attempt": self.attempt,
            "error_kind": self.error_kind,
            "error_class": self.error_class,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
