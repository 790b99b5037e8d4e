"""Discovery of deployed locales to bundle."""

from fnmatch import fnmatch
from pathlib import Path
from typing import List, Optional

from ..constants import (
    LOCALES_GLOB,
    REQUIREJS_CONFIG,
    REQUIREJS_CONFIG_MIN,
    SKIPPED_THEMES,
    STATIC_FRONTEND,
)
from ..errors import TargetDiscoveryError
from ..models import DeploymentTarget


def is_minify_on(locale_root: Path) -> bool:
    """Deployed JS minification leaves a ``requirejs-config.min.js`` behind."""
    return (locale_root / REQUIREJS_CONFIG_MIN).is_file()


def discover_targets(project_root: Path, theme_glob: Optional[str] = None) -> List[DeploymentTarget]:
    """Return every deployed ``<Vendor>/<theme>/<locale>`` under ``pub/static/frontend``.

    ``theme_glob`` is matched against ``Vendor/theme``. The blank theme is never bundled.

    Raises:
        TargetDiscoveryError: if nothing is deployed.
    """
    static_root = project_root / STATIC_FRONTEND
    targets = []

    for locale_root in sorted(static_root.glob(LOCALES_GLOB)):
        if not locale_root.is_dir():
            continue
        vendor, theme, locale = locale_root.relative_to(static_root).parts
        theme_name = f"{vendor}/{theme}"
        if theme_name in SKIPPED_THEMES:
            continue
        if theme_glob and not fnmatch(theme_name, theme_glob):
            continue
        if not ((locale_root / REQUIREJS_CONFIG).is_file() or is_minify_on(locale_root)):
            continue
        targets.append(DeploymentTarget(vendor=vendor, theme=theme, locale=locale, root_path=locale_root))

    if not targets:
        raise TargetDiscoveryError(
            "No locales found! Make sure bundling runs after static content is deployed."
        )
    return targets
