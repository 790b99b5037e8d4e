"""Environment-backed defaults for CLI options."""

import os
from pathlib import Path

from storepack.models import MinifyStrategy


def get_project_root() -> Path:
    """Magento project root holding ``pub/static``."""
    return Path(os.environ.get("STOREPACK_ROOT", Path.cwd()))


def get_usage_threshold() -> int:
    value = os.environ.get("STOREPACK_USAGE_THRESHOLD", "2")
    try:
        return max(1, int(value))
    except ValueError:
        return 2


def get_minify_strategy() -> str:
    value = os.environ.get("STOREPACK_MINIFY_STRATEGY", MinifyStrategy.SAFE.value)
    if value not in {strategy.value for strategy in MinifyStrategy}:
        return MinifyStrategy.SAFE.value
    return value
