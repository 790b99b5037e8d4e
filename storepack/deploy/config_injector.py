"""Wire generated bundles into the deployed RequireJS configuration.

The fragment declares which modules each bundle provides and maps the bundle's
stable id to its physical file, so the loader fetches one file per bundle. It
is appended to the live ``requirejs-config`` files between two markers; an
earlier fragment is removed first, which makes injection idempotent.
"""

import json
import re
from pathlib import Path
from typing import Dict, List, Sequence

from loguru import logger

from ..constants import MARKER_END, MARKER_START, REQUIREJS_CONFIG, REQUIREJS_CONFIG_MIN, bundle_id
from ..models import CompiledBundle

_FRAGMENT = re.compile(r"\n?" + re.escape(MARKER_START) + r".*?" + re.escape(MARKER_END), re.DOTALL)


def _module_name(module_id: str) -> str:
    return module_id[:-3] if module_id.endswith(".js") else module_id


def build_config_fragment(bundles: Sequence[CompiledBundle], system_minified: bool) -> str:
    """``require.config({bundles, paths})`` for the bundles actually written.

    When the bundle is named ``.min.js`` but the loader does not append ``.min``
    itself (minification forced rather than deployed), the physical path
    carries the ``.min`` suffix.
    """
    bundle_members: Dict[str, List[str]] = {}
    paths: Dict[str, str] = {}

    for bundle in bundles:
        logical_id = bundle_id(bundle.name)
        bundle_members[logical_id] = [_module_name(module_id) for module_id in bundle.module_ids]
        paths[logical_id] = f"{logical_id}.min" if bundle.minified and not system_minified else logical_id

    return f"require.config({{bundles: {json.dumps(bundle_members)},paths: {json.dumps(paths)}}});"


def merge_config(existing: str, fragment: str) -> str:
    """Replace any previously injected fragment with ``fragment``; unrelated content is kept."""
    base = _FRAGMENT.sub("", existing).rstrip()
    if base and not base.endswith(";"):
        base += ";"
    injection = f"{MARKER_START}{fragment}{MARKER_END}\n"
    return f"{base}\n{injection}" if base else injection


def inject_config(locale_root: Path, fragment: str) -> List[Path]:
    """Merge ``fragment`` into both deployed config variants that exist; returns the files written."""
    written = []
    for filename in (REQUIREJS_CONFIG, REQUIREJS_CONFIG_MIN):
        config_path = locale_root / filename
        if not config_path.is_file():
            continue
        # newline="" keeps the deployed line endings untouched
        with open(config_path, encoding="utf-8", newline="") as f:
            current = f.read()
        merged = merge_config(current, fragment)
        if merged != current:
            with open(config_path, "w", encoding="utf-8", newline="") as f:
                f.write(merged)
        written.append(config_path)
        logger.info(f"   ✅ Config injected into: {filename}")
    return written
