"""Override lookup services consumed by the validator.

The validator never decides which override mechanisms exist or which one wins;
it asks an :class:`OverrideLocator`. Platform integrations implement the
protocol; :class:`StaticOverrideLocator` serves a precomputed map, typically
loaded from the ``overrides:`` section of a YAML settings file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Protocol, Sequence, Tuple, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import ConfigurationError

# Kind labels reported by the bundled locators. Other locators may report any label.
FILE_OVERRIDE = "Override (phtml/js/html)"
PREFERENCE = "Preference"
PLUGIN = "Plugin"
LAYOUT_OVERRIDE = "Override/extended (layout xml)"

KNOWN_KINDS = (FILE_OVERRIDE, PREFERENCE, PLUGIN, LAYOUT_OVERRIDE)


@dataclass(frozen=True, slots=True)
class OverrideLocation:
    """A concrete override reported for a core path."""

    kind: str
    location: str


@runtime_checkable
class OverrideLocator(Protocol):
    """Resolve the overrides that supersede a core-relative path.

    Implementations must be safe for concurrent read-only queries.
    """

    def locate(self, core_path: str) -> Iterable[OverrideLocation]:
        ...


class _OverrideEntry(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: str = Field(min_length=1)
    location: str = Field(min_length=1)


class _OverrideMap(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    overrides: Dict[str, List[_OverrideEntry]] = Field(default_factory=dict)


def _normalise_core_path(path: str) -> str:
    return path.replace("\\", "/").strip().lstrip("/")


class StaticOverrideLocator:
    """Locator backed by an in-memory ``core path -> overrides`` mapping."""

    def __init__(self, mapping: Mapping[str, Sequence[OverrideLocation]] | None = None) -> None:
        self._mapping: Dict[str, Tuple[OverrideLocation, ...]] = {
            _normalise_core_path(path): tuple(entries) for path, entries in (mapping or {}).items()
        }

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "StaticOverrideLocator":
        """Build from a mapping shaped like ``{"overrides": {path: [{kind, location}]}}``."""
        try:
            parsed = _OverrideMap.model_validate({"overrides": config.get("overrides") or {}})
        except ValidationError as error:
            raise ConfigurationError(
                f"Invalid overrides map: {error}",
                details={"errors": error.errors(include_url=False)},
            ) from error
        return cls(
            {
                path: [OverrideLocation(kind=entry.kind, location=entry.location) for entry in entries]
                for path, entries in parsed.overrides.items()
            }
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> "StaticOverrideLocator":
        config_path = Path(path)
        try:
            with config_path.open("r", encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle) or {}
        except FileNotFoundError as error:
            raise ConfigurationError(f"Override map not found: {config_path}") from error
        except yaml.YAMLError as error:
            raise ConfigurationError(f"Failed to parse override map {config_path}: {error}") from error
        if not isinstance(loaded, Mapping):
            raise ConfigurationError("Override map must be a mapping at the top level.")
        return cls.from_config(loaded)

    def locate(self, core_path: str) -> Tuple[OverrideLocation, ...]:
        return self._mapping.get(_normalise_core_path(core_path), ())

    def __len__(self) -> int:
        return len(self._mapping)


class CompositeOverrideLocator:
    """Concatenate the answers of several locators, in registration order."""

    def __init__(self, *locators: OverrideLocator) -> None:
        self._locators: Tuple[OverrideLocator, ...] = tuple(locators)

    def locate(self, core_path: str) -> Tuple[OverrideLocation, ...]:
        found: List[OverrideLocation] = []
        for locator in self._locators:
            found.extend(locator.locate(core_path))
        return tuple(found)


__all__ = [
    "CompositeOverrideLocator",
    "FILE_OVERRIDE",
    "KNOWN_KINDS",
    "LAYOUT_OVERRIDE",
    "OverrideLocation",
    "OverrideLocator",
    "PLUGIN",
    "PREFERENCE",
    "StaticOverrideLocator",
]
