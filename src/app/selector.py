"""
PrepForge - Prompt Selector.

Maps a problem kind to its template and resolves which template version
to use: an explicit version, else the configured one, else the latest.
"""

import logging
from dataclasses import dataclass

from src.core.binder import BindMode, VariableMap, bind
from src.core.config import Settings, get_settings
from src.core.domain.models import PromptKind, parse_kind
from src.core.prompts import KIND_TEMPLATE_NAMES
from src.infra.prompts.template_store import Template, TemplateStore, get_template_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderedPrompt:
    """A bound prompt and where it came from."""

    kind: PromptKind
    version: str
    name: str
    text: str


class PromptSelector:
    """Resolves (kind, version) to a template."""

    def __init__(
        self,
        store: TemplateStore | None = None,
        settings: Settings | None = None,
    ):
        self._store = store or get_template_store()
        self._settings = settings or get_settings()

    @property
    def store(self) -> TemplateStore:
        return self._store

    def resolve_version(self, explicit_version: str | None = None) -> str:
        if explicit_version:
            return explicit_version
        if self._settings.PROMPT_VERSION:
            return self._settings.PROMPT_VERSION
        return self._store.latest_version()

    def select(
        self,
        kind: PromptKind | str,
        explicit_version: str | None = None,
    ) -> tuple[str, Template]:
        """
        Pick the template for a kind.

        Raises:
            UnknownKindError: If the kind has no template mapping
            TemplateNotFoundError: If the resolved version lacks the template
        """
        prompt_kind = parse_kind(kind)
        name = KIND_TEMPLATE_NAMES[prompt_kind]
        version = self.resolve_version(explicit_version)
        return version, self._store.get_template(version, name)

    def render(
        self,
        kind: PromptKind | str,
        variables: VariableMap,
        mode: BindMode = BindMode.LENIENT,
        explicit_version: str | None = None,
    ) -> RenderedPrompt:
        version, template = self.select(kind, explicit_version)
        text = bind(template.template, variables, mode)
        return RenderedPrompt(
            kind=parse_kind(kind),
            version=version,
            name=template.name,
            text=text,
        )
