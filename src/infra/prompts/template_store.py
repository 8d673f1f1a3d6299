"""
PrepForge - Template Store.

Read-only access to versioned prompt templates stored as ``v<version>.json``
files. Each version is loaded on first use and cached for the lifetime of
the process.

Usage:
    store = get_template_store()

    version = store.latest_version()
    template = store.get_template(version, "dsaProblem")
"""

import json
import logging
import re
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

from src.core.config import get_settings
from src.core.exceptions import ConfigurationError, TemplateNotFoundError

logger = logging.getLogger(__name__)

_VERSION_FILE = re.compile(r"^v(\d+(?:\.\d+)*)\.json$")


@dataclass(frozen=True)
class Template:
    """A single named prompt template within a version."""

    version: str
    name: str
    template: str
    variables: tuple[str, ...]
    description: str = ""


@dataclass(frozen=True)
class TemplateVersion:
    """An immutable, fully loaded template version."""

    version: str
    created_at: str
    description: str
    prompts: Mapping[str, Template]

    def to_info(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "description": self.description,
            "promptCount": len(self.prompts),
        }


def _version_key(version: str) -> tuple[int, ...]:
    return tuple(int(part) for part in version.split("."))


def parse_version_document(data: Any, version: str) -> TemplateVersion:
    """
    Build a TemplateVersion from a decoded version file.

    Raises:
        ConfigurationError: If the document structure is invalid
    """
    if not isinstance(data, dict) or not isinstance(data.get("prompts"), dict):
        raise ConfigurationError(
            message=f"Invalid template file for version {version}",
            details="expected an object with a 'prompts' mapping",
        )

    prompts: dict[str, Template] = {}
    for name, entry in data["prompts"].items():
        if not isinstance(entry, dict) or not isinstance(entry.get("template"), str):
            raise ConfigurationError(
                message=f"Invalid template '{name}' in version {version}",
                details="each prompt needs a string 'template'",
            )
        variables = entry.get("variables", [])
        if not isinstance(variables, list) or not all(isinstance(v, str) for v in variables):
            raise ConfigurationError(
                message=f"Invalid template '{name}' in version {version}",
                details="'variables' must be a list of names",
            )
        prompts[name] = Template(
            version=version,
            name=name,
            template=entry["template"],
            variables=tuple(variables),
            description=entry.get("description", ""),
        )

    return TemplateVersion(
        version=str(data.get("version", version)),
        created_at=str(data.get("createdAt", "")),
        description=str(data.get("description", "")),
        prompts=MappingProxyType(prompts),
    )


class TemplateStore:
    """
    Versioned template cache.

    Population is single-flight: concurrent first access to a version
    performs exactly one load, every other caller waits for it.
    """

    def __init__(
        self,
        templates_dir: str | Path,
        loader: Callable[[Path], Any] | None = None,
    ):
        """
        Args:
            templates_dir: Directory holding ``v<version>.json`` files
            loader: Reads and decodes one version file (defaults to JSON)
        """
        self._dir = Path(templates_dir)
        self._loader = loader or self._read_json
        self._cache: dict[str, TemplateVersion] = {}
        self._lock = threading.Lock()
        self._version_locks: dict[str, threading.Lock] = {}

    @staticmethod
    def _read_json(path: Path) -> Any:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def list_versions(self) -> list[str]:
        """Available versions, ordered by numeric semantic version."""
        if not self._dir.is_dir():
            raise ConfigurationError(
                message="Templates directory not found",
                details=str(self._dir),
            )
        versions = []
        for path in self._dir.iterdir():
            match = _VERSION_FILE.match(path.name)
            if match:
                versions.append(match.group(1))
        return sorted(versions, key=_version_key)

    def latest_version(self) -> str:
        versions = self.list_versions()
        if not versions:
            raise ConfigurationError(
                message="No prompt template versions available",
                details=str(self._dir),
            )
        return versions[-1]

    def get_version(self, version: str) -> TemplateVersion:
        """Load (once) and return a whole template version."""
        cached = self._cache.get(version)
        if cached is not None:
            return cached

        with self._lock:
            version_lock = self._version_locks.setdefault(version, threading.Lock())

        with version_lock:
            cached = self._cache.get(version)
            if cached is None:
                cached = self._load(version)
                self._cache[version] = cached
            return cached

    def get_template(self, version: str, name: str) -> Template:
        """
        Get one template.

        Raises:
            TemplateNotFoundError: If the version or the name does not exist
            ConfigurationError: If the version file cannot be loaded
        """
        loaded = self.get_version(version)
        template = loaded.prompts.get(name)
        if template is None:
            raise TemplateNotFoundError(version, name)
        return template

    def get_version_info(self, version: str) -> dict[str, Any]:
        return self.get_version(version).to_info()

    def list_templates(self, version: str) -> list[str]:
        return list(self.get_version(version).prompts)

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()
            self._version_locks.clear()
        logger.debug("Template cache cleared")

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def _load(self, version: str) -> TemplateVersion:
        path = self._dir / f"v{version}.json"
        if not path.exists():
            raise TemplateNotFoundError(version)

        try:
            data = self._loader(path)
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                message=f"Invalid JSON in template file v{version}.json",
                details=str(e),
            ) from e
        except OSError as e:
            raise ConfigurationError(
                message=f"Cannot read template file v{version}.json",
                details=str(e),
            ) from e

        loaded = parse_version_document(data, version)
        logger.info(f"📄 Loaded prompt templates v{version} ({len(loaded.prompts)} prompts)")
        return loaded


@lru_cache
def get_template_store() -> TemplateStore:
    """Get the process-wide template store."""
    return TemplateStore(get_settings().templates_dir)


def reset_template_store() -> None:
    """Drop the process-wide store so the next call rebuilds it."""
    get_template_store.cache_clear()
