"""Override lookup and classification of patched core files."""

from .locator import (
    FILE_OVERRIDE,
    KNOWN_KINDS,
    LAYOUT_OVERRIDE,
    PLUGIN,
    PREFERENCE,
    CompositeOverrideLocator,
    OverrideLocation,
    OverrideLocator,
    StaticOverrideLocator,
)
from .validator import OverrideFinding, OverrideValidator

__all__ = [
    "CompositeOverrideLocator",
    "FILE_OVERRIDE",
    "KNOWN_KINDS",
    "LAYOUT_OVERRIDE",
    "OverrideFinding",
    "OverrideLocation",
    "OverrideLocator",
    "OverrideValidator",
    "PLUGIN",
    "PREFERENCE",
    "StaticOverrideLocator",
]
