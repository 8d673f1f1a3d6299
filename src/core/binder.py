"""
PrepForge - Variable Binder.

Substitutes ``${name}`` placeholders in template bodies and builds the
layered variable maps the templates are rendered with.

Binding is a pure function of (template, variables, mode): the variable
map is never mutated and no state is kept between calls.
"""

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from src.core.domain.models import PromptKind
from src.core.exceptions import MissingVariableError
from src.core.prompts import (
    DEFAULT_VARIABLES,
    DIFFICULTY_MAPPINGS,
    EXPERIENCE_LEVEL_MAPPINGS,
    KIND_DEFAULTS,
    get_company_config,
    get_tech_stack_config,
)


VariableValue = str | int | float | bool
VariableMap = Mapping[str, VariableValue | None]

_PLACEHOLDER = re.compile(r"\$\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}")
_TERNARY = re.compile(
    r"\$\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\?\s*([^:}]*?)\s*:\s*([^}]*?)\s*\}"
)
_TOKEN = re.compile(f"{_TERNARY.pattern}|{_PLACEHOLDER.pattern}")


class BindMode(str, Enum):
    """How to treat placeholders without a value."""
    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class VariableReport:
    """Declared-versus-provided comparison for a template."""

    missing: list[str]
    extra: list[str]

    @property
    def is_valid(self) -> bool:
        return not self.missing


def _render_value(value: VariableValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_truthy(value: VariableValue | None) -> bool:
    if value is None:
        return False
    text = _render_value(value)
    return bool(text) and text.lower() != "false"


# -----------------------------------------------------------------------------
# Binding
# -----------------------------------------------------------------------------

def bind(
    template: str,
    variables: VariableMap,
    mode: BindMode = BindMode.LENIENT,
) -> str:
    """
    Render a template body.

    Args:
        template: Body containing ``${name}`` and ``${cond ? a : b}`` tokens
        variables: Values to substitute
        mode: STRICT raises on the first unbound placeholder,
            LENIENT substitutes an empty string

    Returns:
        The rendered text

    Raises:
        MissingVariableError: In strict mode, naming the unbound variable
    """

    # One pass over the template body; substituted values are never re-scanned
    def substitute(match: re.Match) -> str:
        condition, when_true, when_false, name = match.groups()
        if condition is not None:
            return when_true if _is_truthy(variables.get(condition)) else when_false
        value = variables.get(name)
        if value is None:
            if mode == BindMode.STRICT:
                raise MissingVariableError(name)
            return ""
        return _render_value(value)

    return _TOKEN.sub(substitute, template)


def extract_variable_names(template: str) -> set[str]:
    """All variable names a template references, ternary conditions included."""
    names = set(_PLACEHOLDER.findall(template))
    names.update(match.group(1) for match in _TERNARY.finditer(template))
    return names


def validate_required(template: str, variables: VariableMap) -> list[str]:
    """Placeholder names with no value, in order of first appearance."""
    missing: list[str] = []
    for name in _PLACEHOLDER.findall(template):
        if variables.get(name) is None and name not in missing:
            missing.append(name)
    return missing


def check_variables(declared: Sequence[str], variables: VariableMap) -> VariableReport:
    """Compare a template's declared variables with the provided map."""
    declared_set = set(declared)
    return VariableReport(
        missing=[name for name in declared if variables.get(name) is None],
        extra=[name for name in variables if name not in declared_set],
    )


# -----------------------------------------------------------------------------
# Variable Maps
# -----------------------------------------------------------------------------

def build_variables(*layers: VariableMap | None) -> dict[str, VariableValue]:
    """Merge layers left to right; later layers win, None values are skipped."""
    merged: dict[str, VariableValue] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is not None:
                merged[key] = value
    return merged


def normalize_experience_level(level: str) -> str:
    """Map free text like "Senior Engineer" or "entry" to junior / mid-level / senior."""
    normalized = re.sub(r"[-_\s]", "", level.lower())
    if normalized in EXPERIENCE_LEVEL_MAPPINGS:
        return EXPERIENCE_LEVEL_MAPPINGS[normalized]
    for word in re.findall(r"[a-z]+", level.lower()):
        if word in EXPERIENCE_LEVEL_MAPPINGS:
            return EXPERIENCE_LEVEL_MAPPINGS[word]
    return "mid-level"


def normalize_difficulty(difficulty: str | int | None) -> str:
    if difficulty is None:
        return "medium"
    return DIFFICULTY_MAPPINGS.get(str(difficulty).strip().lower(), "medium")


def interview_variables(
    kind: PromptKind,
    company: str = "",
    role: str = "",
    round_number: int = 1,
    experience_level: str | None = None,
    tech_stack: str | None = None,
    overrides: VariableMap | None = None,
) -> dict[str, VariableValue]:
    """
    Build the full variable map for a prompt kind.

    Layers: hard defaults, per-kind defaults, company preset,
    technology preset, interview context, then caller overrides.
    """
    context: dict[str, VariableValue] = {"round": str(round_number)}
    if company:
        context["companies"] = company
    if role:
        context["designation"] = role
    if experience_level:
        context["experienceLevel"] = normalize_experience_level(experience_level)

    company_layer = get_company_config(company) if company else None
    tech_layer = get_tech_stack_config(tech_stack) if tech_stack else None

    variables = build_variables(
        DEFAULT_VARIABLES,
        KIND_DEFAULTS.get(kind),
        company_layer,
        tech_layer,
        context,
        overrides,
    )
    variables["difficulty"] = normalize_difficulty(variables.get("difficulty"))  # type: ignore[arg-type]
    return variables
