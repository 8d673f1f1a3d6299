"""
PrepForge - Retry-and-Fallback Controller.

Wraps the single-attempt generator in a bounded retry loop and guarantees
a problem for every slot: once the attempt budget is exhausted, a
deterministic fallback problem is returned instead.

Configuration errors and caller errors are not contained here; they
propagate unchanged.
"""

import logging
import threading
from collections.abc import Mapping

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from src.app.fallback import FallbackFactory, build_fallback_problem
from src.app.generation import ProblemGenerator
from src.app.selector import PromptSelector
from src.core.binder import BindMode, VariableValue
from src.core.config import Settings, get_settings
from src.core.domain.models import GenerationAttempt, PromptKind, parse_problem_kind
from src.core.domain.problems import ProblemBase
from src.core.exceptions import GenerationError

logger = logging.getLogger(__name__)


class AttemptRecorder:
    """Keeps failed generation attempts in memory for inspection."""

    def __init__(self):
        self._attempts: list[GenerationAttempt] = []
        self._lock = threading.Lock()

    def record(self, attempt: GenerationAttempt) -> None:
        with self._lock:
            self._attempts.append(attempt)

    @property
    def attempts(self) -> list[GenerationAttempt]:
        with self._lock:
            return list(self._attempts)

    def for_slot(self, kind: PromptKind, slot_index: int) -> list[GenerationAttempt]:
        return [a for a in self.attempts if a.kind == kind and a.slot_index == slot_index]

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()


class GenerationController:
    """
    Problem generation with retries and a guaranteed fallback.

    Attempts for one slot are sequential and all use the same bound prompt.
    """

    def __init__(
        self,
        generator: ProblemGenerator,
        selector: PromptSelector | None = None,
        recorder: AttemptRecorder | None = None,
        settings: Settings | None = None,
    ):
        self._generator = generator
        self._selector = selector or PromptSelector()
        self._recorder = recorder or AttemptRecorder()
        self._settings = settings or get_settings()

    @property
    def recorder(self) -> AttemptRecorder:
        return self._recorder

    def _wait_strategy(self):
        backoff = self._settings.GENERATION_RETRY_BACKOFF_SECONDS
        if backoff <= 0:
            return wait_none()
        return wait_exponential(multiplier=backoff, max=backoff * 8)

    def _record_failure(
        self,
        kind: PromptKind,
        slot_index: int,
        attempt_number: int,
        error: GenerationError,
    ) -> None:
        logger.warning(
            f"⚠️ Generation attempt {attempt_number} failed for {kind.value} "
            f"slot {slot_index} [{error.error_kind}]: {error}"
        )
        try:
            self._recorder.record(GenerationAttempt(
                kind=kind,
                slot_index=slot_index,
                attempt=attempt_number,
                error_kind=error.error_kind,
                error_class=type(error).__name__,
                message=str(error),
            ))
        except Exception as e:
            logger.error(f"Failed to record generation attempt: {e}")

    async def generate_with_fallback(
        self,
        kind: PromptKind | str,
        variables: Mapping[str, VariableValue | None],
        attempt_budget: int | None = None,
        fallback_factory: FallbackFactory | None = None,
        slot_index: int = 0,
        version: str | None = None,
    ) -> ProblemBase:
        """
        Generate a problem, falling back after the attempt budget is spent.

        Args:
            kind: Problem kind (evaluation is rejected)
            variables: Values bound into the template (lenient mode)
            attempt_budget: Maximum attempts, defaults to GENERATION_ATTEMPTS
            fallback_factory: Called as (kind, slot_index, difficulty) on exhaustion
            slot_index: Slot position, used for logging and fallback selection
            version: Explicit template version

        Raises:
            UnknownKindError: For an unknown or non-problem kind
            ConfigurationError: If the template or version is missing
        """
        problem_kind = parse_problem_kind(kind)
        budget = max(1, attempt_budget or self._settings.GENERATION_ATTEMPTS)
        factory = fallback_factory or build_fallback_problem

        prompt = self._selector.render(problem_kind, variables, BindMode.LENIENT, version)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(budget),
            retry=retry_if_exception_type(GenerationError),
            wait=self._wait_strategy(),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempt_number = attempt.retry_state.attempt_number
                    try:
                        problem = await self._generator.generate(prompt.text, problem_kind)
                    except GenerationError as e:
                        self._record_failure(problem_kind, slot_index, attempt_number, e)
                        raise
                    logger.info(
                        f"✅ Generated {problem_kind.value} slot {slot_index} "
                        f"(prompt v{prompt.version}, attempt {attempt_number})"
                    )
                    return problem
        except GenerationError as e:
            logger.warning(
                f"⚠️ Using fallback for {problem_kind.value} slot {slot_index} "
                f"after {budget} attempts: {e.error_kind}"
            )

        difficulty = str(variables.get("difficulty") or "medium")
        return factory(problem_kind, slot_index, difficulty)
