"""
PrepForge - Submission Evaluator.

Scores a candidate's submission for a generated problem using the
``evaluateSubmission`` template. Model output that cannot be used yields
a neutral default evaluation rather than an error.
"""

import logging
import math
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from src.app.generation import ProblemGenerator
from src.app.selector import PromptSelector
from src.core.binder import BindMode, interview_variables
from src.core.domain.models import PromptKind
from src.core.domain.problems import ProblemBase
from src.core.exceptions import GenerationError
from src.infra.llm.extraction import extract_json_object

logger = logging.getLogger(__name__)

EVALUATION_TECHNOLOGY: dict[PromptKind, str] = {
    PromptKind.DSA: "Algorithms",
    PromptKind.MACHINE_CODING: "JavaScript/React",
    PromptKind.SYSTEM_DESIGN: "System Design",
    PromptKind.THEORY: "JavaScript/TypeScript",
    PromptKind.MOCK_INTERVIEW: "Technical Communication",
}


class SubmissionEvaluation(BaseModel):
    """Structured feedback on one submission."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    score: int = Field(ge=0, le=100)
    feedback: str = ""
    strengths: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)
    is_default: bool = False

    @classmethod
    def neutral(cls) -> "SubmissionEvaluation":
        return cls(
            score=50,
            feedback="Unable to evaluate automatically - please review manually.",
            strengths=[],
            improvements=[],
            is_default=True,
        )


class SubmissionEvaluator:
    """Renders the evaluation prompt and parses the model's verdict."""

    def __init__(self, generator: ProblemGenerator, selector: PromptSelector | None = None):
        self._generator = generator
        self._selector = selector or PromptSelector()

    def build_prompt(
        self,
        problem: ProblemBase,
        submission: str,
        designation: str = "",
        company: str = "",
        time_taken: Optional[str] = None,
        version: Optional[str] = None,
    ) -> str:
        """
        Bind the evaluation template strictly.

        Raises:
            MissingVariableError: If the template needs a value we cannot supply
        """
        context = (
            f"Problem: {problem.title}\n{problem.description}\n\n"
            f"Submission:\n{submission}"
        )
        variables = interview_variables(
            PromptKind.EVALUATION,
            company=company,
            role=designation,
            overrides={
                "problemType": problem.kind.value,
                "technology": EVALUATION_TECHNOLOGY[problem.kind],
                "timeAllocated": problem.estimated_time,
                "timeTaken": time_taken,
                "context": context,
            },
        )
        rendered = self._selector.render(PromptKind.EVALUATION, variables, BindMode.STRICT, version)
        return rendered.text

    async def evaluate(
        self,
        problem: ProblemBase,
        submission: str,
        designation: str = "",
        company: str = "",
        time_taken: Optional[str] = None,
        version: Optional[str] = None,
    ) -> SubmissionEvaluation:
        """Evaluate a submission, returning a neutral default if the output is unusable."""
        prompt = self.build_prompt(problem, submission, designation, company, time_taken, version)

        try:
            completion = await self._generator.complete(prompt)
            data = extract_json_object(completion)
            score = data.get("score")
            if isinstance(score, float) and math.isfinite(score):
                data["score"] = round(score)
            data.pop("isDefault", None)
            data.pop("is_default", None)
            evaluation = SubmissionEvaluation.model_validate(data)
        except (GenerationError, ValidationError) as e:
            logger.warning(f"Failed to parse evaluation: {e}")
            return SubmissionEvaluation.neutral()

        logger.info(f"📝 Evaluated submission for '{problem.title}': {evaluation.score}/100")
        return evaluation
