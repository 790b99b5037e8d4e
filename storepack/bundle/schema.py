"""Definition file schema - contract between module capture and bundling."""

from typing import Any, Dict, List

from pydantic import BaseModel, Field

from ..models import BundleDefinition


class DefinitionFile(BaseModel):
    """Bundle definitions plus the optional settings stored alongside them."""

    bundles: List[BundleDefinition] = Field(..., min_length=1)
    exclusions: List[str] = Field(
        default_factory=list, description="ModuleIds to drop before bundling; '/' or '*' suffix marks a prefix"
    )
    selectors: Dict[str, Any] = Field(
        default_factory=dict, description="Opaque page selectors, only read by the capture stage"
    )

    def is_excluded(self, module_id: str) -> bool:
        for entry in self.exclusions:
            if entry.endswith("*"):
                if module_id.startswith(entry[:-1]):
                    return True
            elif entry.endswith("/"):
                if module_id.startswith(entry):
                    return True
            elif module_id == entry:
                return True
        return False

    def effective_bundles(self) -> List[BundleDefinition]:
        """Bundles with excluded modules removed, declaration order kept."""
        if not self.exclusions:
            return [bundle.model_copy(deep=True) for bundle in self.bundles]
        return [
            BundleDefinition(
                name=bundle.name,
                modules={mid: path for mid, path in bundle.modules.items() if not self.is_excluded(mid)},
            )
            for bundle in self.bundles
        ]
