"""
PrepForge - Problem Records.

The closed set of problem variants produced by generation. Each variant is
a pydantic model tagged by its ``type`` field; nothing reaches a session
without passing through one of these models.

Field names are snake_case in Python and camelCase on the wire.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from src.core.domain.models import PromptKind


Difficulty = Literal["easy", "medium", "hard"]
NonBlank = Annotated[str, Field(min_length=1)]


class WireModel(BaseModel):
    """Base config shared by every problem model."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
        frozen=True,
    )


# -----------------------------------------------------------------------------
# Nested Models
# -----------------------------------------------------------------------------

class DSAExample(WireModel):
    """One worked input/output example."""
    input: str
    output: str
    explanation: str | None = None


class DesignScale(WireModel):
    """Scale envelope of a system design problem."""
    users: NonBlank
    requests_per_second: NonBlank
    data_size: NonBlank


# -----------------------------------------------------------------------------
# Problem Variants
# -----------------------------------------------------------------------------

class ProblemBase(WireModel):
    """Fields every problem variant carries."""

    id: NonBlank
    title: NonBlank
    difficulty: Difficulty
    estimated_time: NonBlank
    description: NonBlank

    @property
    def kind(self) -> PromptKind:
        return PromptKind(self.type)  # type: ignore[attr-defined]

    def to_document(self) -> dict:
        """Serialize with wire (camelCase) field names."""
        return self.model_dump(by_alias=True, mode="json")


class DSAProblem(ProblemBase):
    type: Literal["dsa"] = "dsa"
    problem_statement: NonBlank
    input_format: NonBlank
    output_format: NonBlank
    constraints: list[str]
    examples: Annotated[list[DSAExample], Field(min_length=1)]
    category: NonBlank
    tags: list[str]
    hints: list[str] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)


class MachineCodingProblem(ProblemBase):
    type: Literal["machine-coding"] = "machine-coding"
    requirements: Annotated[list[str], Field(min_length=1)]
    constraints: list[str]
    acceptance_criteria: Annotated[list[str], Field(min_length=1)]
    technologies: list[str]
    hints: list[str] = Field(default_factory=list)


class SystemDesignProblem(ProblemBase):
    type: Literal["system-design"] = "system-design"
    functional_requirements: Annotated[list[str], Field(min_length=1)]
    non_functional_requirements: Annotated[list[str], Field(min_length=1)]
    constraints: list[str]
    scale: DesignScale
    expected_deliverables: list[str]
    technologies: list[str]
    follow_up_questions: list[str] = Field(default_factory=list)


class TheoryProblem(ProblemBase):
    type: Literal["theory"] = "theory"
    question: NonBlank
    expected_answer: NonBlank
    key_points: list[str]
    examples: list[str] = Field(default_factory=list)
    follow_up_questions: list[str] = Field(default_factory=list)


class MockInterviewProblem(ProblemBase):
    type: Literal["mock-interview"] = "mock-interview"
    interview_type: NonBlank
    questions: Annotated[list[str], Field(min_length=1)]
    evaluation_criteria: list[str]
    follow_up_questions: list[str] = Field(default_factory=list)


ProblemRecord = Annotated[
    Union[
        DSAProblem,
        MachineCodingProblem,
        SystemDesignProblem,
        TheoryProblem,
        MockInterviewProblem,
    ],
    Field(discriminator="type"),
]

PROBLEM_MODELS: dict[PromptKind, type[ProblemBase]] = {
    PromptKind.DSA: DSAProblem,
    PromptKind.MACHINE_CODING: MachineCodingProblem,
    PromptKind.SYSTEM_DESIGN: SystemDesignProblem,
    PromptKind.THEORY: TheoryProblem,
    PromptKind.MOCK_INTERVIEW: MockInterviewProblem,
}

# Lists of plain strings per variant, used when coercing model output
STRING_LIST_FIELDS: dict[PromptKind, tuple[str, ...]] = {
    PromptKind.DSA: ("constraints", "tags", "hints", "followUpQuestions"),
    PromptKind.MACHINE_CODING: (
        "requirements", "constraints", "acceptanceCriteria", "technologies", "hints",
    ),
    PromptKind.SYSTEM_DESIGN: (
        "functionalRequirements", "nonFunctionalRequirements", "constraints",
        "expectedDeliverables", "technologies", "followUpQuestions",
    ),
    PromptKind.THEORY: ("keyPoints", "examples", "followUpQuestions"),
    PromptKind.MOCK_INTERVIEW: ("questions", "evaluationCriteria", "followUpQuestions"),
}

_problem_adapter: TypeAdapter = TypeAdapter(ProblemRecord)


def problem_from_document(data: dict) -> ProblemBase:
    """Rebuild a problem record from a stored document."""
    return _problem_adapter.validate_python(data)
