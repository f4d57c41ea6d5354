from __future__ import annotations

from pathlib import Path

import pytest

from ph.errors import ConfigurationError
from ph.overrides import LAYOUT_OVERRIDE, OverrideLocation, OverrideLocator, StaticOverrideLocator


def test_static_locator_from_yaml(tmp_path: Path) -> None:
    path = tmp_path / "overrides.yaml"
    path.write_text(
        "overrides:\n"
        "  /vendor/acme/module-a/view/frontend/layout/default.xml:\n"
        "    - kind: Override/extended (layout xml)\n"
        "      location: app/design/frontend/Acme/default/Acme_A/layout/default.xml\n",
        encoding="utf-8",
    )

    locator = StaticOverrideLocator.from_yaml(path)

    assert isinstance(locator, OverrideLocator)
    assert len(locator) == 1
    assert locator.locate("vendor/acme/module-a/view/frontend/layout/default.xml") == (
        OverrideLocation(LAYOUT_OVERRIDE, "app/design/frontend/Acme/default/Acme_A/layout/default.xml"),
    )
    assert locator.locate("vendor/acme/module-a/etc/di.xml") == ()


@pytest.mark.parametrize(
    "config",
    [
        {"overrides": {"vendor/a.php": [{"kind": "Plugin"}]}},
        {"overrides": {"vendor/a.php": [{"kind": "", "location": "x"}]}},
        {"overrides": {"vendor/a.php": "not a list"}},
    ],
)
def test_invalid_override_map_is_a_configuration_error(config: dict) -> None:
    with pytest.raises(ConfigurationError):
        StaticOverrideLocator.from_config(config)


def test_missing_override_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        StaticOverrideLocator.from_yaml(tmp_path / "missing.yaml")
