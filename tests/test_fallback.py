"""
Unit tests for the fallback problem catalogue.
"""

import pytest

from src.app.fallback import FALLBACK_CATALOGUE, FALLBACK_ESTIMATED_TIME, build_fallback_problem
from src.core.domain.models import PROBLEM_KINDS, PromptKind
from src.core.domain.problems import PROBLEM_MODELS, problem_from_document
from src.core.exceptions import UnknownKindError


class TestFallbackProblems:
    """Test suite for build_fallback_problem()."""

    @pytest.mark.parametrize("kind", PROBLEM_KINDS)
    def test_every_kind_has_a_valid_fallback(self, kind):
        problem = build_fallback_problem(kind, 0)

        assert isinstance(problem, PROBLEM_MODELS[kind])
        assert problem.kind == kind
        assert problem.difficulty == "medium"
        assert problem.estimated_time == FALLBACK_ESTIMATED_TIME

    @pytest.mark.parametrize("kind", PROBLEM_KINDS)
    def test_fallback_survives_document_round_trip(self, kind):
        problem = build_fallback_problem(kind, 1, "hard")

        assert problem_from_document(problem.to_document()) == problem

    def test_selection_is_deterministic(self):
        first = build_fallback_problem(PromptKind.DSA, 3, "easy")
        second = build_fallback_problem(PromptKind.DSA, 3, "easy")

        assert first == second
        assert first.id == "fallback-dsa-3"

    def test_slots_rotate_through_catalogue(self):
        size = len(FALLBACK_CATALOGUE[PromptKind.THEORY])

        titles = [build_fallback_problem(PromptKind.THEORY, i).title for i in range(size + 1)]

        assert len(set(titles[:size])) == size
        assert titles[size] == titles[0]

    def test_slot_ids_differ_within_a_round(self):
        ids = {build_fallback_problem(PromptKind.SYSTEM_DESIGN, i).id for i in range(4)}

        assert len(ids) == 4

    @pytest.mark.parametrize("difficulty,expected", [
        ("HARD", "hard"), ("easy", "easy"), ("impossible", "medium"), ("", "medium"),
    ])
    def test_difficulty_is_applied(self, difficulty, expected):
        assert build_fallback_problem(PromptKind.MOCK_INTERVIEW, 0, difficulty).difficulty == expected

    def test_estimated_time_is_applied(self):
        problem = build_fallback_problem(PromptKind.DSA, 0, estimated_time="45-60 minutes")

        assert problem.estimated_time == "45-60 minutes"

    def test_evaluation_kind_has_no_fallback(self):
        with pytest.raises(UnknownKindError):
            build_fallback_problem(PromptKind.EVALUATION, 0)
