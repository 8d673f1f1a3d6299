"""
Pytest configuration and fixtures for PrepForge tests.
"""

import asyncio
import json
import re
import sys
from pathlib import Path

import pytest


# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.app.controller import AttemptRecorder, GenerationController  # noqa: E402
from src.app.fallback import build_fallback_problem  # noqa: E402
from src.app.generation import ProblemGenerator  # noqa: E402
from src.app.rounds import RoundSessionManager  # noqa: E402
from src.app.selector import PromptSelector  # noqa: E402
from src.core.config import get_settings  # noqa: E402
from src.core.domain.models import PROBLEM_KINDS, InterviewRound  # noqa: E402
from src.core.exceptions import UpstreamUnavailableError  # noqa: E402
from src.infra.persistence.repository import RoundSessionRepository, SimulationRepository  # noqa: E402
from src.infra.persistence.store import InMemoryDocumentStore  # noqa: E402
from src.infra.prompts.template_store import reset_template_store  # noqa: E402


# =============================================================================
# Fake Text Clients
# =============================================================================

def problem_json(kind, title="Generated Problem", **overrides) -> str:
    """Valid model output for a kind, built from a fallback problem."""
    document = build_fallback_problem(kind, 0).to_document()
    document.pop("id")
    document["title"] = title
    document.update(overrides)
    return json.dumps(document)


def kind_in_prompt(prompt: str):
    """The problem kind a rendered template asks for."""
    for kind in PROBLEM_KINDS:
        if f'"type": "{kind.value}"' in prompt:
            return kind
    raise AssertionError("prompt does not name a problem type")


class ScriptedTextClient:
    """Returns (or raises) scripted responses in order; the last one repeats."""

    SERVICE = "scripted"

    def __init__(self, responses):
        self._responses = list(responses)
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self._responses) - 1)
        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def calls(self) -> int:
        return len(self.prompts)


class EchoKindTextClient:
    """
    Answers every prompt with a valid problem of the requested kind.

    Titles carry a running call number; ``delays`` (seconds, by call order)
    make later calls finish before earlier ones.
    """

    SERVICE = "echo"

    def __init__(self, delays=None):
        self._delays = list(delays or [])
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        call = self.calls
        self.calls += 1
        if call < len(self._delays):
            await asyncio.sleep(self._delays[call])
        match = re.search(r"(\d+) of (\d+)", prompt)
        number = match.group(1) if match else str(call)
        return problem_json(kind_in_prompt(prompt), title=f"Generated {number}")


class DownTextClient:
    """Always unavailable."""

    SERVICE = "down"

    def __init__(self):
        self.calls = 0

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        raise UpstreamUnavailableError(self.SERVICE, "connection refused")


# =============================================================================
# Environment
# =============================================================================

@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """Fast, deterministic settings and a fresh template store for every test."""
    monkeypatch.setenv("GENERATION_RETRY_BACKOFF_SECONDS", "0")
    monkeypatch.setenv("GENERATION_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("GENERATION_ATTEMPTS", "3")
    monkeypatch.setenv("PROMPT_VERSION", "")
    monkeypatch.setenv("PROMPTS_DIR", "")
    get_settings.cache_clear()
    reset_template_store()
    yield
    get_settings.cache_clear()
    reset_template_store()


@pytest.fixture(scope="session")
def project_root_path():
    """Return the project root directory."""
    return project_root


# =============================================================================
# Components
# =============================================================================

@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def session_repo(store):
    return RoundSessionRepository(store)


@pytest.fixture
def simulation_repo(store):
    return SimulationRepository(store)


@pytest.fixture
def recorder():
    return AttemptRecorder()


@pytest.fixture
def make_controller(recorder):
    """Build a GenerationController around any text client."""
    def factory(client):
        return GenerationController(ProblemGenerator(client), PromptSelector(), recorder)
    return factory


@pytest.fixture
def make_manager(make_controller, session_repo, simulation_repo):
    """Build a RoundSessionManager around any text client."""
    def factory(client, **kwargs):
        return RoundSessionManager(make_controller(client), session_repo, simulation_repo, **kwargs)
    return factory


@pytest.fixture
def sample_rounds():
    """A three-round plan covering the common round kinds."""
    return [
        InterviewRound(
            name="DSA Round",
            duration="45-60 minutes",
            focus_areas=["Algorithms"],
            difficulty="medium",
        ),
        InterviewRound(
            name="Machine Coding",
            duration="30-45 minutes",
            focus_areas=["React"],
            difficulty="hard",
        ),
        InterviewRound(
            name="Culture Chat",
            duration="about half an hour",
            difficulty="easy",
        ),
    ]
