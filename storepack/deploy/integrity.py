"""Subresource-integrity manifest maintenance (``sri-hashes.json``).

The manifest is shared by every deployed locale, so it is read once, updated in
memory for all targets, and written once at the end of a run. Only changed or
new entries are touched; a run over unchanged artifacts leaves the file as is.
"""

import base64
import hashlib
import json
from pathlib import Path
from typing import Dict, Iterable, Sequence

from loguru import logger

from ..constants import (
    BUNDLE_DIR,
    REQUIREJS_CONFIG,
    REQUIREJS_CONFIG_MIN,
    SRI_HASHES,
    bundle_filename,
)
from ..models import DeploymentTarget


def sri_digest(data: bytes) -> str:
    return "sha256-" + base64.b64encode(hashlib.sha256(data).digest()).decode("ascii")


def _update_entry(path: Path, key: str, manifest: Dict[str, str]) -> bool:
    try:
        digest = sri_digest(path.read_bytes())
    except FileNotFoundError:
        # Variant not produced for this target, e.g. .min.js without deployed minification
        return False
    if manifest.get(key) == digest:
        return False
    manifest[key] = digest
    return True


def target_artifacts(target: DeploymentTarget, bundle_names: Iterable[str]) -> Dict[str, Path]:
    """Manifest key -> file, for the config files and every bundle name variant of a target."""
    artifacts = {}
    for filename in (REQUIREJS_CONFIG, REQUIREJS_CONFIG_MIN):
        artifacts[f"{target.manifest_prefix}/{filename}"] = target.root_path / filename
    for name in bundle_names:
        for minified in (False, True):
            filename = bundle_filename(name, minified)
            artifacts[f"{target.manifest_prefix}/{BUNDLE_DIR}/{filename}"] = target.root_path / BUNDLE_DIR / filename
    return artifacts


def update_integrity(static_root: Path, targets: Sequence[DeploymentTarget], bundle_names: Sequence[str]) -> int:
    """Refresh digests of every artifact of ``targets``; returns the number of entries changed.

    A missing manifest means the platform does not use SRI and is not an error.
    """
    manifest_path = static_root / SRI_HASHES
    if not manifest_path.is_file():
        logger.debug(f"ℹ️ No {SRI_HASHES} found. Skipping SRI update.")
        return 0

    logger.info("🔐 Updating SRI hashes...")
    manifest: Dict[str, str] = json.loads(manifest_path.read_text(encoding="utf-8"))
    if not isinstance(manifest, dict):
        raise ValueError(f"{SRI_HASHES} must hold a JSON object")

    updates = 0
    for target in targets:
        for key, path in target_artifacts(target, bundle_names).items():
            if _update_entry(path, key, manifest):
                updates += 1

    if updates:
        manifest_path.write_text(json.dumps(manifest, indent=4, ensure_ascii=False), encoding="utf-8")
        logger.info(f"✅ Updated {updates} hashes in {SRI_HASHES}")
    else:
        logger.info("   No relevant file changes detected for SRI.")
    return updates
