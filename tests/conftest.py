from __future__ import annotations

import os
import subprocess
import sys
import textwrap
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


CORE_TEMPLATE = "vendor/acme/module-catalog/view/frontend/templates/product/view.phtml"
THEME_TEMPLATE = "app/design/frontend/Acme/default/Acme_Catalog/templates/product/view.phtml"
CORE_MODEL = "vendor/acme/module-catalog/Model/Product.php"


@dataclass(slots=True)
class TinyProject:
    """Fixture payload representing a synthetic project with a vendor patch."""

    root: Path
    patch_path: Path
    theme_copy: Path

    def run_cli(self, *args: str) -> subprocess.CompletedProcess[str]:
        """Invoke ``python -m ph.cli`` with the provided arguments."""

        env = os.environ.copy()
        pythonpath = str(SRC)
        if env.get("PYTHONPATH"):
            pythonpath = os.pathsep.join([pythonpath, env["PYTHONPATH"]])
        env["PYTHONPATH"] = pythonpath

        command = [sys.executable, "-m", "ph.cli", *args]
        return subprocess.run(  # noqa: S603 - command constructed from known values
            command,
            cwd=self.root,
            env=env,
            capture_output=True,
            text=True,
            check=False,
        )


VENDOR_PATCH = textwrap.dedent(
    f"""
    diff --git a/{CORE_TEMPLATE} b/{CORE_TEMPLATE}
    index 1111111..2222222 100644
    --- a/{CORE_TEMPLATE}
    +++ b/{CORE_TEMPLATE}
    @@ -2,3 +2,3 @@
     <div class="product-info">
    -    <span><?= $block->getName() ?></span>
    +    <span><?= $block->escapeHtml($block->getName()) ?></span>
     </div>
    diff --git a/{CORE_MODEL} b/{CORE_MODEL}
    index 3333333..4444444 100644
    --- a/{CORE_MODEL}
    +++ b/{CORE_MODEL}
    @@ -1,3 +1,4 @@
     <?php
     namespace Acme\\Catalog\\Model;
    +// patched
     class Product
    diff --git a/generated/code/Acme/Catalog/Interceptor.php b/generated/code/Acme/Catalog/Interceptor.php
    --- a/generated/code/Acme/Catalog/Interceptor.php
    +++ b/generated/code/Acme/Catalog/Interceptor.php
    @@ -1 +1 @@
    -old
    +new
    """
).lstrip()


CONFIG_YAML = textwrap.dedent(
    f"""
    overrides:
      {CORE_TEMPLATE}:
        - kind: "Override (phtml/js/html)"
          location: {THEME_TEMPLATE}
      {CORE_MODEL}:
        - kind: Preference
          location: Acme\\CatalogCustom\\Model\\Product
        - kind: Plugin
          location: Vendor\\Other\\Plugin\\ProductPlugin::beforeSave
    """
).lstrip()


THEME_COPY = textwrap.dedent(
    """
    <?php /** Acme theme copy */ ?>
    <section>
    <div class="product-info">
        <span><?= $block->getName() ?></span>
    </div>
    </section>
    """
).lstrip()


@pytest.fixture()
def tiny_project(tmp_path: Path) -> TinyProject:
    """Create a project with a vendor.patch, an override map and a theme copy."""

    root = tmp_path / "tiny-project"
    root.mkdir()

    patch_path = root / "vendor.patch"
    patch_path.write_text(VENDOR_PATCH, encoding="utf-8")
    (root / "patch-helper.yaml").write_text(CONFIG_YAML, encoding="utf-8")

    theme_copy = root / THEME_TEMPLATE
    theme_copy.parent.mkdir(parents=True)
    theme_copy.write_text(THEME_COPY, encoding="utf-8")

    return TinyProject(root=root, patch_path=patch_path, theme_copy=theme_copy)
