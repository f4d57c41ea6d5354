from __future__ import annotations

from typing import List

import pytest

from ph.overrides import (
    FILE_OVERRIDE,
    PLUGIN,
    PREFERENCE,
    CompositeOverrideLocator,
    OverrideFinding,
    OverrideLocation,
    OverrideLocator,
    OverrideValidator,
    StaticOverrideLocator,
)
from ph.patchfile import parse_patch

CORE = "vendor/acme/module-catalog/Model/Product.php"


def _patched(path: str):
    patch = f"--- a/{path}\n+++ b/{path}\n@@ -1 +1 @@\n-a\n+b\n"
    return parse_patch(patch).files[0]


class RecordingLocator:
    """Locator double that remembers which paths were queried."""

    def __init__(self, *locations: OverrideLocation) -> None:
        self.locations = locations
        self.calls: List[str] = []

    def locate(self, core_path: str):
        self.calls.append(core_path)
        return list(self.locations)


def test_every_reported_override_becomes_a_finding() -> None:
    locator = StaticOverrideLocator(
        {
            CORE: [
                OverrideLocation(PREFERENCE, "Acme\\Custom\\Model\\Product"),
                OverrideLocation(PLUGIN, "Acme\\Custom\\Plugin\\ProductPlugin::afterLoad"),
            ]
        }
    )

    findings = OverrideValidator().classify(_patched(CORE), locator)

    assert findings == (
        OverrideFinding(PREFERENCE, CORE, "Acme\\Custom\\Model\\Product"),
        OverrideFinding(PLUGIN, CORE, "Acme\\Custom\\Plugin\\ProductPlugin::afterLoad"),
    )


def test_no_overrides_means_no_findings() -> None:
    findings = OverrideValidator().classify(_patched(CORE), StaticOverrideLocator())

    assert findings == ()


def test_kind_labels_are_passed_through_verbatim() -> None:
    locator = RecordingLocator(OverrideLocation("Custom DI rewrite", "etc/di.xml"))

    findings = OverrideValidator().classify(_patched(CORE), locator)

    assert [finding.kind for finding in findings] == ["Custom DI rewrite"]
    assert findings[0].as_row() == ("Custom DI rewrite", CORE, "etc/di.xml")


@pytest.mark.parametrize(
    "path",
    [
        "generated/code/Acme/Catalog/Model/Product/Interceptor.php",
        "pub/static/frontend/Acme/default/en_US/js/app.js",
        "README.md",
        "vendor/composer/autoload_classmap.php",
    ],
)
def test_inadmissible_paths_are_skipped_without_lookup(path: str) -> None:
    locator = RecordingLocator(OverrideLocation(FILE_OVERRIDE, "anything"))
    validator = OverrideValidator()

    assert not validator.can_validate(path)
    assert validator.classify(_patched(path), locator) == ()
    assert locator.calls == []


def test_locator_is_queried_once_per_file() -> None:
    locator = RecordingLocator(OverrideLocation(PREFERENCE, "Acme\\Model\\Product"))

    OverrideValidator().classify(_patched(CORE), locator)

    assert locator.calls == [CORE]


def test_classification_is_idempotent() -> None:
    locator = StaticOverrideLocator({CORE: [OverrideLocation(PREFERENCE, "Acme\\Model\\Product")]})
    validator = OverrideValidator()
    patched = _patched(CORE)

    assert validator.classify(patched, locator) == validator.classify(patched, locator)


def test_vendor_namespaces_limit_reported_locations() -> None:
    locator = StaticOverrideLocator(
        {
            CORE: [
                OverrideLocation(PREFERENCE, "Acme\\Custom\\Model\\Product"),
                OverrideLocation(PLUGIN, "Other\\Module\\Plugin\\Product::beforeSave"),
                OverrideLocation(FILE_OVERRIDE, "app/design/frontend/Acme/default/Magento_Catalog/x.phtml"),
            ]
        }
    )

    findings = OverrideValidator().classify(_patched(CORE), locator, vendor_namespaces=("Acme",))

    assert [finding.kind for finding in findings] == [PREFERENCE, FILE_OVERRIDE]


def test_custom_module_roots() -> None:
    validator = OverrideValidator(module_roots=("src/",), excluded_prefixes=())

    assert validator.can_validate("src/Core/File.php")
    assert not validator.can_validate("vendor/acme/File.php")


def test_composite_locator_concatenates_answers() -> None:
    first = StaticOverrideLocator({CORE: [OverrideLocation(PREFERENCE, "A")]})
    second = StaticOverrideLocator({CORE: [OverrideLocation(PLUGIN, "B")]})
    composite = CompositeOverrideLocator(first, second)

    assert isinstance(composite, OverrideLocator)
    assert [location.kind for location in composite.locate(CORE)] == [PREFERENCE, PLUGIN]
