"""
Core models for the storepack engine.

Pydantic models describe everything read from or written to disk; dataclasses
hold the short-lived records that only exist while one bundle is processed.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .constants import FRONTEND


# ============================================================================
# Bundle Definitions
# ============================================================================


class BundleDefinition(BaseModel):
    """A named group of modules in captured execution order."""

    name: str = Field(..., min_length=1, description="Reserved group name or page type")
    modules: Dict[str, str] = Field(
        default_factory=dict, description="Ordered ModuleId -> declared path relative to the locale root"
    )


# ============================================================================
# Build Options
# ============================================================================


class MinifyStrategy(str, Enum):
    """Minification strategies"""

    SAFE = "safe"
    AGGRESSIVE = "aggressive"


class BundleOptions(BaseModel):
    """Process-wide options for one bundling run."""

    minify: bool = Field(default=False, description="Minify irrespective of the deployed minification setting")
    strategy: MinifyStrategy = Field(default=MinifyStrategy.SAFE)
    source_map: bool = Field(default=False, description="Emit a .map file next to every bundle")

    @property
    def should_minify(self) -> bool:
        return self.minify or self.strategy is MinifyStrategy.AGGRESSIVE


class ClassifierConfig(BaseModel):
    """Tunables for splitting page bundles into vendor/common groups."""

    usage_threshold: int = Field(default=2, ge=1, description="Pages a module must appear on to be shared")
    transactional_bundles: List[str] = Field(default_factory=lambda: ["checkout", "cart"])
    always_common: List[str] = Field(default_factory=list, description="Cleaned module names forced into common")


# ============================================================================
# Deployment Targets
# ============================================================================


class DeploymentTarget(BaseModel):
    """One deployed locale of one theme."""

    vendor: str
    theme: str
    locale: str
    root_path: Path

    @property
    def name(self) -> str:
        return f"{self.vendor}/{self.theme}/{self.locale}"

    @property
    def manifest_prefix(self) -> str:
        """Key prefix used for this target's entries in the integrity manifest."""
        return "/".join([FRONTEND, self.vendor, self.theme, self.locale])


class TargetState(str, Enum):
    """Per-target deployment states"""

    PREPARING = "preparing"
    BUILDING = "building"
    SWAPPING = "swapping"
    CONFIG_INJECTION = "config_injection"
    DONE = "done"
    FAILED = "failed"


class TargetResult(BaseModel):
    """Outcome of deploying one target."""

    target: DeploymentTarget
    state: TargetState
    bundles: List[str] = Field(default_factory=list, description="Filenames promoted to the live directory")
    promoted: bool = Field(default=False, description="New bundles reached the live directory, even if a later step failed")
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is TargetState.DONE


class RunSummary(BaseModel):
    """Outcome of a whole bundling run."""

    results: List[TargetResult] = Field(default_factory=list)
    elapsed_seconds: float = 0.0
    integrity_updates: int = 0

    @property
    def succeeded(self) -> List[TargetResult]:
        return [r for r in self.results if r.succeeded]

    @property
    def failed(self) -> List[TargetResult]:
        return [r for r in self.results if not r.succeeded]

    @property
    def promoted(self) -> List[TargetResult]:
        return [r for r in self.results if r.promoted]


# ============================================================================
# In-flight Build Records
# ============================================================================


class ModuleKind(str, Enum):
    """Source forms a module can arrive in"""

    TEXT_RESOURCE = "text_resource"
    LEGACY_SCRIPT = "legacy_script"
    ANONYMOUS_DEFINITION = "anonymous_definition"
    NAMED_DEFINITION = "named_definition"


@dataclass
class ResolvedModule:
    """A module read from disk and rewritten into a named definition."""

    id: str
    absolute_path: Path
    kind: ModuleKind
    source_text: str
    relative_path: str = ""


@dataclass
class CompiledBundle:
    """A bundle written to the staging directory with its compressed siblings."""

    name: str
    filename: str
    path: Path
    content: bytes
    module_ids: List[str]
    gzip_path: Path
    brotli_path: Path
    source_map: Optional[bytes] = None
    minified: bool = False
