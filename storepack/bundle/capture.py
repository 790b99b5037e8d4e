"""Turn raw captured module records into bundle definitions.

The capture stage records, per page type, every module the loader resolved in
the order it resolved them. Some of those entries can never be bundled: loader
built-ins, externally hosted scripts, and modules behind plugins other than
``text!``.
"""

import json
import re
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

from loguru import logger

from ..errors import DefinitionError
from ..models import BundleDefinition

# Defined synchronously by the loader or unsafe to bundle
EXCLUDED_MODULES = frozenset(
    [
        "mixins",
        "require",
        "module",
        "exports",
        # legacyBuild.min.js, overwrites native objects
        "prototype",
    ]
)

_EXTERNAL_URL = re.compile(r"^([a-z][a-z0-9+.-]*:)?//", re.IGNORECASE)


def is_bundleable(module_id: str) -> bool:
    if module_id in EXCLUDED_MODULES:
        return False
    if _EXTERNAL_URL.match(module_id):
        return False
    if "!" in module_id and not module_id.startswith("text!"):
        return False
    return True


def sanitize_capture(
    records: Mapping[str, Mapping[str, str]], skip: Iterable[str] = ()
) -> List[BundleDefinition]:
    """Build one BundleDefinition per captured page type, keeping capture order."""
    skipped_pages = set(skip)
    bundles = []
    for page_type, modules in records.items():
        if page_type in skipped_pages:
            logger.debug(f"Skipping captured page type '{page_type}'")
            continue
        kept: Dict[str, str] = {}
        for module_id, module_path in modules.items():
            if is_bundleable(module_id):
                kept[module_id] = module_path
            else:
                logger.debug(f"Dropping unbundleable module '{module_id}' from {page_type}")
        bundles.append(BundleDefinition(name=page_type, modules=kept))
    return bundles


def load_capture(path: Path) -> Dict[str, Dict[str, str]]:
    """Read a capture file: a JSON object of page type -> ordered module map,
    or a JSON list of ``{"name", "modules"}`` records."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise DefinitionError(f"Could not read capture file {path}: {e}")

    if isinstance(data, list):
        try:
            data = {record["name"]: record["modules"] for record in data}
        except (KeyError, TypeError):
            raise DefinitionError(f"{path.name}: every capture record needs 'name' and 'modules'")

    if not isinstance(data, dict) or not data:
        raise DefinitionError(f"{path.name}: capture file holds no page records")
    for page_type, modules in data.items():
        if not isinstance(modules, dict) or not all(isinstance(v, str) for v in modules.values()):
            raise DefinitionError(f"{path.name}: modules of '{page_type}' must map module ids to paths")
    return data
