"""
Unit tests for the prompt selector.
"""

import pytest

from src.app.selector import PromptSelector
from src.core.binder import BindMode, interview_variables
from src.core.config import Settings
from src.core.domain.models import PromptKind
from src.core.exceptions import MissingVariableError, TemplateNotFoundError, UnknownKindError


class TestPromptSelector:
    """Test suite for kind -> template resolution."""

    @pytest.fixture
    def selector(self):
        return PromptSelector()

    @pytest.mark.parametrize("kind,name", [
        ("dsa", "dsaProblem"),
        ("theory", "theoryProblem"),
        ("machine-coding", "machineCodingProblem"),
        ("machine_coding", "machineCodingProblem"),
        ("system_design", "systemDesignProblem"),
        ("mock-interview", "mockInterviewProblem"),
        ("evaluation", "evaluateSubmission"),
    ])
    def test_kind_maps_to_template(self, selector, kind, name):
        _, template = selector.select(kind)

        assert template.name == name

    def test_defaults_to_latest_version(self, selector):
        version, template = selector.select(PromptKind.DSA)

        assert version == "1.1.0"
        assert template.version == "1.1.0"

    def test_explicit_version_wins(self, selector):
        version, template = selector.select(PromptKind.DSA, explicit_version="1.0.0")

        assert version == "1.0.0"
        assert template.variables == ("designation", "companies", "round")

    def test_configured_version_used_when_not_explicit(self):
        selector = PromptSelector(settings=Settings(PROMPT_VERSION="1.0.0"))

        version, _ = selector.select(PromptKind.THEORY)

        assert version == "1.0.0"

    def test_unknown_kind_raises(self, selector):
        with pytest.raises(UnknownKindError):
            selector.select("haiku")

    def test_unknown_version_raises(self, selector):
        with pytest.raises(TemplateNotFoundError):
            selector.select(PromptKind.DSA, explicit_version="0.0.1")

    def test_render_binds_variables(self, selector):
        variables = interview_variables(PromptKind.DSA, company="Google", role="Frontend Engineer")

        rendered = selector.render(PromptKind.DSA, variables)

        assert rendered.version == "1.1.0"
        assert rendered.name == "dsaProblem"
        assert "Frontend Engineer" in rendered.text
        assert "${" not in rendered.text
        assert "Tailor the problem to the company context above." in rendered.text

    def test_render_strict_raises_for_missing(self, selector):
        with pytest.raises(MissingVariableError):
            selector.render(PromptKind.DSA, {"designation": "Dev"}, BindMode.STRICT)
