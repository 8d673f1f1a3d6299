"""
PrepForge - API Routes.

FastAPI router for simulations, round sessions, the dashboard and prompt
metadata. The caller's identity arrives already verified in the
``X-User-Id`` header.

Endpoints that trigger generation are rate-limited to protect model quota.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.schemas import (
    AdvanceProblemRequest,
    CompleteRoundRequest,
    CreateSimulationRequest,
    EvaluateSubmissionRequest,
    EvaluationResponse,
    PromptVersionsResponse,
    RoundSessionResponse,
    SimulationResponse,
)
from src.app.controller import GenerationController
from src.app.dashboard import ProgressAggregator
from src.app.evaluation import SubmissionEvaluator
from src.app.generation import ProblemGenerator
from src.app.rounds import RoundSessionManager
from src.app.selector import PromptSelector
from src.core.config import get_settings
from src.core.domain.models import InterviewRound
from src.core.exceptions import (
    InvalidProblemIndexError,
    PersistenceError,
    PrepForgeError,
    PromptError,
    SessionError,
    SessionNotFoundError,
    SimulationNotFoundError,
)
from src.infra.llm.gemini import GeminiTextClient
from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository
from src.infra.persistence.store import JsonDocumentStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["prepforge"])

# Rate limiting on generation endpoints, per client address
limiter = Limiter(key_func=get_remote_address)
GENERATION_LIMIT = get_settings().RATE_LIMIT_GENERATION


@dataclass
class Services:
    """Application services shared by all routes."""
    manager: RoundSessionManager
    aggregator: ProgressAggregator
    evaluator: SubmissionEvaluator
    selector: PromptSelector


@lru_cache
def get_services() -> Services:
    """Wire the production services (Gemini client, JSON document store)."""
    settings = get_settings()
    store = JsonDocumentStore(settings.DATA_DIR)
    sessions = RoundSessionRepository(store)
    simulations = SimulationRepository(store)

    generator = ProblemGenerator(GeminiTextClient())
    selector = PromptSelector()
    controller = GenerationController(generator, selector)

    return Services(
        manager=RoundSessionManager(controller, sessions, simulations),
        aggregator=ProgressAggregator(sessions, simulations),
        evaluator=SubmissionEvaluator(generator, selector),
        selector=selector,
    )


def to_http_error(error: PrepForgeError) -> HTTPException:
    """Translate a domain error into an HTTP error."""
    if isinstance(error, (SimulationNotFoundError, SessionNotFoundError)):
        status = 404
    elif isinstance(error, (PromptError, SessionError)):
        status = 400
    elif isinstance(error, PersistenceError):
        status = 503
    else:
        # ConfigurationError and anything unexpected
        status = 500
    return HTTPException(status_code=status, detail=str(error))


# =============================================================================
# Simulations
# =============================================================================

@router.post("/simulations", response_model=SimulationResponse, status_code=201)
async def create_simulation(
    body: CreateSimulationRequest,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    """Create a simulation; the standard round plan is used when none is given."""
    try:
        rounds = None
        if body.rounds:
            rounds = [
                InterviewRound(
                    name=r.name,
                    duration=r.duration,
                    description=r.description,
                    focus_areas=r.focus_areas,
                    difficulty=r.difficulty,
                )
                for r in body.rounds
            ]
        simulation = services.manager.create_simulation(
            user_id=user_id,
            company_name=body.company_name,
            role_level=body.role_level,
            rounds=rounds,
            estimated_duration=body.estimated_duration,
        )
        return SimulationResponse.from_simulation(simulation)
    except PrepForgeError as e:
        raise to_http_error(e) from e
    except Exception as e:
        logger.error(f"Failed to create simulation: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/simulations/{simulation_id}", response_model=SimulationResponse)
async def get_simulation(
    simulation_id: str,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    try:
        return SimulationResponse.from_simulation(
            services.manager.get_simulation(user_id, simulation_id)
        )
    except PrepForgeError as e:
        raise to_http_error(e) from e


# =============================================================================
# Round Sessions
# =============================================================================

@router.post("/simulations/{simulation_id}/rounds/{round_index}/start", response_model=RoundSessionResponse)
@limiter.limit(GENERATION_LIMIT)
async def start_round(
    request: Request,
    simulation_id: str,
    round_index: int,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    """Start a round, or resume it if it was already started."""
    try:
        session = await services.manager.start_round(user_id, simulation_id, round_index)
        return RoundSessionResponse.from_session(session)
    except PrepForgeError as e:
        raise to_http_error(e) from e
    except Exception as e:
        logger.error(f"Failed to start round: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/simulations/{simulation_id}/rounds/{round_index}/restart", response_model=RoundSessionResponse)
@limiter.limit(GENERATION_LIMIT)
async def restart_round(
    request: Request,
    simulation_id: str,
    round_index: int,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    """Discard the round's session and generate a fresh one."""
    try:
        session = await services.manager.restart_round(user_id, simulation_id, round_index)
        return RoundSessionResponse.from_session(session)
    except PrepForgeError as e:
        raise to_http_error(e) from e
    except Exception as e:
        logger.error(f"Failed to restart round: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/simulations/{simulation_id}/rounds/{round_index}/complete", response_model=RoundSessionResponse)
async def complete_round(
    simulation_id: str,
    round_index: int,
    body: CompleteRoundRequest,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    try:
        session = await services.manager.complete_round(
            user_id, simulation_id, round_index, body.score, body.feedback
        )
        return RoundSessionResponse.from_session(session)
    except PrepForgeError as e:
        raise to_http_error(e) from e


@router.post("/simulations/{simulation_id}/rounds/{round_index}/advance", response_model=RoundSessionResponse)
async def advance_problem(
    simulation_id: str,
    round_index: int,
    body: AdvanceProblemRequest,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    try:
        session = await services.manager.advance_problem(
            user_id, simulation_id, round_index, body.problem_index
        )
        return RoundSessionResponse.from_session(session)
    except PrepForgeError as e:
        raise to_http_error(e) from e


@router.get("/simulations/{simulation_id}/rounds/{round_index}/session", response_model=RoundSessionResponse)
async def get_round_session(
    simulation_id: str,
    round_index: int,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    """Read a round's session without starting it."""
    try:
        session = services.manager.require_round_session(user_id, simulation_id, round_index)
        return RoundSessionResponse.from_session(session)
    except PrepForgeError as e:
        raise to_http_error(e) from e


@router.post(
    "/simulations/{simulation_id}/rounds/{round_index}/problems/{problem_index}/evaluate",
    response_model=EvaluationResponse,
)
@limiter.limit(GENERATION_LIMIT)
async def evaluate_submission(
    request: Request,
    simulation_id: str,
    round_index: int,
    problem_index: int,
    body: EvaluateSubmissionRequest,
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    """Evaluate a submission for one problem of a started round."""
    try:
        session = services.manager.require_round_session(user_id, simulation_id, round_index)
        if not 0 <= problem_index < len(session.problems):
            raise InvalidProblemIndexError(problem_index, len(session.problems))

        evaluation = await services.evaluator.evaluate(
            session.problems[problem_index],
            body.submission,
            designation=session.role_level,
            company=session.company_name,
            time_taken=body.time_taken,
        )
        return EvaluationResponse(
            score=evaluation.score,
            feedback=evaluation.feedback,
            strengths=evaluation.strengths,
            improvements=evaluation.improvements,
            is_default=evaluation.is_default,
        )
    except PrepForgeError as e:
        raise to_http_error(e) from e
    except Exception as e:
        logger.error(f"Failed to evaluate submission: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# Dashboard & Metadata
# =============================================================================

@router.get("/dashboard/stats")
async def dashboard_stats(
    user_id: str = Header(..., alias="X-User-Id"),
    services: Services = Depends(get_services),
):
    try:
        return services.aggregator.user_stats(user_id).to_dict()
    except PrepForgeError as e:
        raise to_http_error(e) from e


@router.get("/prompts/versions", response_model=PromptVersionsResponse)
async def prompt_versions(services: Services = Depends(get_services)):
    """List available prompt template versions."""
    try:
        store = services.selector.store
        versions = store.list_versions()
        return PromptVersionsResponse(
            versions=[store.get_version_info(v) for v in versions],
            latest=versions[-1] if versions else "",
            active=services.selector.resolve_version(),
        )
    except PrepForgeError as e:
        raise to_http_error(e) from e


# =============================================================================
# Health Check
# =============================================================================

@router.get("/health")
async def health_check():
    """API health check."""
    return {"status": "healthy", "service": "PrepForge"}
