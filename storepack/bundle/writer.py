import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models import BundleDefinition


def write_definitions(
    bundles: List[BundleDefinition],
    output_path: Path,
    exclusions: Optional[List[str]] = None,
    selectors: Optional[Dict[str, Any]] = None,
) -> Path:
    """Write classified bundles as a CommonJS definition file readable by ``load_definitions``."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    payload: Any = [bundle.model_dump(mode="json") for bundle in bundles]
    if exclusions or selectors:
        payload = {"bundles": payload, "exclusions": exclusions or [], "selectors": selectors or {}}

    with open(output_path, "w", encoding="utf-8") as f:
        f.write("module.exports = ")
        json.dump(payload, f, indent=2, ensure_ascii=False)
        f.write(";\n")

    return output_path
