"""
PrepForge - Problem Generator.

Turns one bound prompt into one validated problem record:
call the text client (with a timeout), locate and decode the JSON
object, coerce the usual model quirks, then validate against the
expected variant. A single call is a single attempt; retrying is the
controller's job.
"""

import asyncio
import json
import logging
import math
import uuid
from typing import Any

from pydantic import ValidationError

from src.core.config import get_settings
from src.core.domain.models import PromptKind, parse_problem_kind
from src.core.domain.problems import PROBLEM_MODELS, STRING_LIST_FIELDS, ProblemBase
from src.core.exceptions import (
    ConfigurationError,
    GenerationError,
    SchemaViolationError,
    UpstreamUnavailableError,
)
from src.core.prompts import KIND_TEMPLATE_NAMES
from src.infra.llm.extraction import extract_json_object
from src.infra.llm.gemini import TextGenerator

logger = logging.getLogger(__name__)

_WRAPPER_KEYS = ("problem",) + tuple(
    name for kind, name in KIND_TEMPLATE_NAMES.items() if kind != PromptKind.EVALUATION
)


# -----------------------------------------------------------------------------
# Coercion
# -----------------------------------------------------------------------------

def _unwrap(data: dict[str, Any]) -> dict[str, Any]:
    if "title" in data:
        return data
    for key in _WRAPPER_KEYS:
        inner = data.get(key)
        if isinstance(inner, dict):
            return inner
    return data


def _as_text(value: Any) -> Any:
    if isinstance(value, str) or value is None:
        return value
    return json.dumps(value)


def _coerce(data: dict[str, Any], kind: PromptKind) -> tuple[dict[str, Any], list[str]]:
    """Coerced copy of the output plus the fields coercion already found invalid."""
    coerced = dict(_unwrap(data))
    violations: list[str] = []

    declared = coerced.get("type")
    if declared is None or (isinstance(declared, str) and not declared.strip()):
        coerced["type"] = kind.value
    else:
        normalized = str(declared).strip().lower().replace("_", "-").replace(" ", "-")
        if normalized != kind.value:
            violations.append("type")
        # Validate the remaining fields against the expected variant
        coerced["type"] = kind.value

    difficulty = coerced.get("difficulty")
    if isinstance(difficulty, str):
        coerced["difficulty"] = difficulty.strip().lower()

    estimated = coerced.get("estimatedTime")
    if isinstance(estimated, (int, float)) and not isinstance(estimated, bool):
        if math.isfinite(estimated):
            coerced["estimatedTime"] = f"{int(estimated)} minutes"
        else:
            violations.append("estimatedTime")

    for field_name in STRING_LIST_FIELDS[kind]:
        if isinstance(coerced.get(field_name), str):
            coerced[field_name] = [coerced[field_name]]

    if kind == PromptKind.DSA:
        examples = coerced.get("examples")
        if isinstance(examples, dict):
            examples = [examples]
        if isinstance(examples, list):
            coerced["examples"] = [
                {**example, "input": _as_text(example.get("input")), "output": _as_text(example.get("output"))}
                if isinstance(example, dict) else example
                for example in examples
            ]

    problem_id = coerced.get("id")
    if not isinstance(problem_id, str) or not problem_id.strip():
        coerced["id"] = uuid.uuid4().hex

    return coerced, violations


def coerce_problem_data(data: dict[str, Any], kind: PromptKind) -> dict[str, Any]:
    """
    Normalise decoded model output before validation.

    Raises:
        SchemaViolationError: If the output declares a different problem type
            or a non-finite estimatedTime
    """
    coerced, violations = _coerce(data, kind)
    if violations:
        raise SchemaViolationError(violations)
    return coerced


def _violation_paths(error: ValidationError) -> list[str]:
    paths: list[str] = []
    for item in error.errors():
        path = ".".join(str(part) for part in item["loc"]) or "<root>"
        if path not in paths:
            paths.append(path)
    return paths


def validate_problem(data: dict[str, Any], kind: PromptKind | str) -> ProblemBase:
    """
    Coerce and validate decoded output as a problem of the given kind.

    Raises:
        SchemaViolationError: Listing every violating field
    """
    problem_kind = parse_problem_kind(kind)
    coerced, violations = _coerce(data, problem_kind)
    try:
        problem = PROBLEM_MODELS[problem_kind].model_validate(coerced)
    except ValidationError as e:
        paths = violations + [p for p in _violation_paths(e) if p not in violations]
        raise SchemaViolationError(paths) from e
    if violations:
        raise SchemaViolationError(violations)
    return problem


# -----------------------------------------------------------------------------
# Generator
# -----------------------------------------------------------------------------

class ProblemGenerator:
    """Single-attempt prompt -> problem record pipeline."""

    def __init__(self, client: TextGenerator, timeout_seconds: float | None = None):
        self._client = client
        self._timeout = (
            timeout_seconds if timeout_seconds is not None
            else get_settings().GENERATION_TIMEOUT_SECONDS
        )
        self._service = getattr(client, "SERVICE", type(client).__name__)

    async def complete(self, prompt: str) -> str:
        """
        Call the text client within the timeout.

        Raises:
            UpstreamUnavailableError: On timeout or transport failure
        """
        try:
            return await asyncio.wait_for(self._client.generate(prompt), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise UpstreamUnavailableError(
                self._service, f"timed out after {self._timeout}s"
            ) from e
        except (GenerationError, ConfigurationError):
            raise
        except Exception as e:
            raise UpstreamUnavailableError(self._service, str(e)) from e

    async def generate(self, prompt: str, kind: PromptKind | str) -> ProblemBase:
        """
        Generate one problem record.

        Raises:
            GenerationError: Any of the transient generation failures
            ConfigurationError: If the client is not configured
        """
        problem_kind = parse_problem_kind(kind)
        completion = await self.complete(prompt)
        data = extract_json_object(completion)
        problem = validate_problem(data, problem_kind)
        logger.debug(f"Generated {problem_kind.value} problem '{problem.title}' ({problem.id})")
        return problem
