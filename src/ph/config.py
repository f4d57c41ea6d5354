"""Run settings for an audit, loaded from YAML and command-line values."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError
from .overrides.locator import FILE_OVERRIDE
from .overrides.validator import DEFAULT_EXCLUDED_PREFIXES, DEFAULT_MODULE_ROOTS
from .patchfile.applier import DEFAULT_POSITION_SLACK

DEFAULT_PATCH_FILENAME = "vendor.patch"
DEFAULT_RESIDUAL_FILENAME = "vendor_files_to_check.patch"
SETTINGS_SECTION = "analyse"

_INTEGER = re.compile(r"^[+-]?\d+$")


class AuditSettings(BaseModel):
    """Validated options for a single audit run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    fuzz_budget: Optional[int] = Field(default=None, ge=0)
    position_slack: int = Field(default=DEFAULT_POSITION_SLACK, ge=0)
    sort_by_type: bool = False
    vendor_namespaces: Tuple[str, ...] = ()
    strict: bool = False
    module_roots: Tuple[str, ...] = DEFAULT_MODULE_ROOTS
    excluded_prefixes: Tuple[str, ...] = DEFAULT_EXCLUDED_PREFIXES
    file_override_kinds: Tuple[str, ...] = (FILE_OVERRIDE,)
    patch_filename: str = DEFAULT_PATCH_FILENAME
    residual_filename: str = DEFAULT_RESIDUAL_FILENAME

    @field_validator("vendor_namespaces", mode="before")
    @classmethod
    def _split_namespaces(cls, value: Any) -> Any:
        if isinstance(value, str):
            return tuple(part for part in value.replace(" ", "").split(",") if part)
        return value

    @property
    def auto_update(self) -> bool:
        """True when hunks should be propagated into file-copy overrides."""
        return self.fuzz_budget is not None


def parse_fuzz_budget(raw: Any) -> Optional[int]:
    """Interpret the user-facing fuzz factor; ``None`` or blank disables updates."""
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ConfigurationError("Please provide an integer as fuzz factor.")
    if isinstance(raw, int):
        value = raw
    else:
        text = str(raw).strip()
        if not text:
            return None
        if not _INTEGER.match(text):
            raise ConfigurationError("Please provide an integer as fuzz factor.", details={"value": text})
        value = int(text)
    if value < 0:
        raise ConfigurationError("Fuzz factor must not be negative.", details={"value": value})
    return value


def load_config(config_path: Path | str) -> Dict[str, Any]:
    """Load YAML configuration from disk and return it as a dictionary."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigurationError(f"Failed to parse config: {error}") from error
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping at the top level.")
    return data


def build_settings(config: Mapping[str, Any] | None = None, **overrides: Any) -> AuditSettings:
    """Merge the ``analyse`` section of ``config`` with explicit overrides.

    Overrides whose value is ``None`` leave the configured value in place.
    """
    merged: Dict[str, Any] = {}
    section = (config or {}).get(SETTINGS_SECTION) or {}
    if not isinstance(section, Mapping):
        raise ConfigurationError(f"'{SETTINGS_SECTION}' must be a mapping.")
    merged.update(section)
    merged.update({key: value for key, value in overrides.items() if value is not None})
    if "fuzz_budget" in merged:
        merged["fuzz_budget"] = parse_fuzz_budget(merged["fuzz_budget"])
    try:
        return AuditSettings.model_validate(merged)
    except ValidationError as error:
        raise ConfigurationError(
            f"Invalid settings: {error}",
            details={"errors": error.errors(include_url=False)},
        ) from error


__all__ = [
    "AuditSettings",
    "DEFAULT_PATCH_FILENAME",
    "DEFAULT_RESIDUAL_FILENAME",
    "build_settings",
    "load_config",
    "parse_fuzz_budget",
]
