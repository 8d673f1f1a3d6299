"""
PrepForge - API Request/Response Schemas.

Pydantic models for API validation.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from src.core.domain.models import RoundSession, Simulation


# =============================================================================
# Request Schemas
# =============================================================================

class RoundSpec(BaseModel):
    """One round of a simulation plan."""
    name: str = Field(..., min_length=1)
    duration: str = Field(default="30-45 minutes", description='Free text such as "45-60 minutes"')
    description: str = ""
    focus_areas: list[str] = Field(default_factory=list)
    difficulty: str = "medium"


class CreateSimulationRequest(BaseModel):
    """Request to create a simulation for a target company and role."""
    company_name: str = Field(..., min_length=1)
    role_level: str = Field(..., min_length=1, description="e.g. Senior Frontend Engineer")
    estimated_duration: Optional[str] = Field(default=None, description='e.g. "2-3 hours"')
    rounds: Optional[list[RoundSpec]] = Field(default=None, description="Defaults to the standard plan")


class CompleteRoundRequest(BaseModel):
    """Request to complete a round with its final score."""
    score: float = Field(..., ge=0, le=100)
    feedback: str = ""


class AdvanceProblemRequest(BaseModel):
    """Request to move to another problem slot."""
    problem_index: int = Field(..., ge=0)


class EvaluateSubmissionRequest(BaseModel):
    """A candidate's solution for one problem."""
    submission: str = Field(..., min_length=1)
    time_taken: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class RoundResponse(BaseModel):
    name: str
    duration: str
    description: str
    focus_areas: list[str]
    difficulty: str


class SimulationResponse(BaseModel):
    """A simulation and its progress."""
    simulation_id: str
    company_name: str
    role_level: str
    status: str
    rounds: list[RoundResponse]
    completed_rounds: list[int]
    progress_percent: float
    total_duration: int
    created_at: datetime
    completed_at: Optional[datetime] = None

    @classmethod
    def from_simulation(cls, simulation: Simulation) -> "SimulationResponse":
        return cls(
            simulation_id=simulation.simulation_id,
            company_name=simulation.company_name,
            role_level=simulation.role_level,
            status=simulation.status.value,
            rounds=[
                RoundResponse(
                    name=r.name,
                    duration=r.duration,
                    description=r.description,
                    focus_areas=r.focus_areas,
                    difficulty=r.difficulty,
                )
                for r in simulation.rounds
            ],
            completed_rounds=simulation.completed_rounds,
            progress_percent=simulation.progress_percent,
            total_duration=simulation.total_duration,
            created_at=simulation.created_at,
            completed_at=simulation.completed_at,
        )


class RoundSessionResponse(BaseModel):
    """A round session with its problems (problems use camelCase wire fields)."""
    session_id: str
    simulation_id: str
    round_name: str
    round_index: int
    round_type: str
    status: str
    current_problem_index: int
    problems: list[dict[str, Any]]
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_score: Optional[float] = None
    feedback: Optional[str] = None

    @classmethod
    def from_session(cls, session: RoundSession) -> "RoundSessionResponse":
        return cls(
            session_id=session.session_id,
            simulation_id=session.simulation_id,
            round_name=session.round_name,
            round_index=session.round_index,
            round_type=session.round_type.value,
            status=session.status.value,
            current_problem_index=session.current_problem_index,
            problems=[p.to_document() for p in session.problems],
            started_at=session.started_at,
            completed_at=session.completed_at,
            total_score=session.total_score,
            feedback=session.feedback,
        )


class EvaluationResponse(BaseModel):
    """Submission evaluation from AI."""
    score: int
    feedback: str
    strengths: list[str]
    improvements: list[str]
    is_default: bool


class PromptVersionsResponse(BaseModel):
    versions: list[dict[str, Any]]
    latest: str
    active: str
