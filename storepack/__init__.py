"""storepack - bundle captured storefront modules and deploy them atomically."""

from .bundle import classify_bundles, load_definitions, write_definitions
from .deploy import run_bundle
from .models import BundleDefinition, BundleOptions, ClassifierConfig, MinifyStrategy, RunSummary

__version__ = "1.0.0"

__all__ = [
    "BundleDefinition",
    "BundleOptions",
    "ClassifierConfig",
    "MinifyStrategy",
    "RunSummary",
    "classify_bundles",
    "load_definitions",
    "run_bundle",
    "write_definitions",
]
