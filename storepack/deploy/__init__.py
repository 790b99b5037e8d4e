from .config_injector import build_config_fragment, inject_config, merge_config
from .integrity import sri_digest, update_integrity
from .orchestrator import TargetDeployment, deploy_targets, run_bundle
from .targets import discover_targets, is_minify_on

__all__ = [
    "TargetDeployment",
    "build_config_fragment",
    "deploy_targets",
    "discover_targets",
    "inject_config",
    "is_minify_on",
    "merge_config",
    "run_bundle",
    "sri_digest",
    "update_integrity",
]
