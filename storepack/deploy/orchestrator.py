"""Deploy bundles into every target with an atomic directory swap.

Per target::

    PREPARING -> BUILDING -> SWAPPING -> CONFIG_INJECTION -> DONE
                                                         \\-> FAILED (any step)

Bundles are built into ``magepack.staging`` next to the live ``magepack``
directory. Visibility flips with a rename, never a copy, so the live
directory holds either the complete previous bundle set or the complete new
one. Targets run concurrently and a failing target never affects another.
"""

import asyncio
import os
import shutil
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from loguru import logger

from ..build.processor import BuildContext, process_bundle
from ..build.version_map import load_version_map
from ..constants import BACKUP_DIR, BUNDLE_DIR, STAGING_DIR, STATIC_FRONTEND
from ..errors import StagingError, SwapError
from ..models import (
    BundleDefinition,
    BundleOptions,
    CompiledBundle,
    DeploymentTarget,
    RunSummary,
    TargetResult,
    TargetState,
)
from .config_injector import build_config_fragment, inject_config
from .integrity import update_integrity
from .targets import discover_targets, is_minify_on

Rename = Callable[[Path, Path], None]


class TargetDeployment:
    """Runs the deployment state machine for one target."""

    def __init__(
        self,
        target: DeploymentTarget,
        bundles: Sequence[BundleDefinition],
        options: BundleOptions,
        rename: Rename = os.rename,
    ) -> None:
        self.target = target
        self.bundles = list(bundles)
        self.options = options
        self.rename = rename
        self.state = TargetState.PREPARING
        self.system_minified = False
        self.promoted = False

        root = target.root_path
        self.live_dir = root / BUNDLE_DIR
        self.staging_dir = root / STAGING_DIR
        self.backup_dir = root / BACKUP_DIR

    def _enter(self, state: TargetState) -> None:
        logger.debug(f"[{self.target.name}] {self.state.value} -> {state.value}")
        self.state = state

    def prepare(self) -> None:
        try:
            if self.staging_dir.exists():
                shutil.rmtree(self.staging_dir)
            self.staging_dir.mkdir(parents=True)
        except OSError as e:
            raise StagingError(f"Could not prepare {self.staging_dir}: {e}")

    async def build(self) -> List[CompiledBundle]:
        root = self.target.root_path
        self.system_minified = await asyncio.to_thread(is_minify_on, root)
        context = BuildContext(
            root=root,
            minified=self.system_minified or self.options.minify,
            version_map=await asyncio.to_thread(load_version_map, root, self.system_minified),
        )
        results = await asyncio.gather(
            *(process_bundle(bundle, context, self.staging_dir, self.options) for bundle in self.bundles)
        )
        return [compiled for compiled in results if compiled is not None]

    def swap(self) -> None:
        """Promote staging to live, keeping the previous live directory until the promote succeeded."""
        had_live = self.live_dir.exists()
        try:
            if had_live:
                if self.backup_dir.exists():
                    shutil.rmtree(self.backup_dir)
                self.rename(self.live_dir, self.backup_dir)
        except OSError as e:
            raise SwapError(f"Could not move {self.live_dir.name} aside: {e}")

        try:
            self.rename(self.staging_dir, self.live_dir)
        except OSError as e:
            if had_live:
                self.restore_backup(e)
            raise SwapError(f"Could not promote {self.staging_dir.name}: {e}")

        if had_live:
            shutil.rmtree(self.backup_dir, ignore_errors=True)

    def restore_backup(self, promote_error: OSError) -> None:
        """Put the previous live directory back after a failed promote."""
        try:
            self.rename(self.backup_dir, self.live_dir)
        except OSError as e:
            logger.error(f"[{self.target.name}] Previous bundles could not be restored from {self.backup_dir.name}: {e}")
            raise SwapError(
                f"Could not promote {self.staging_dir.name}: {promote_error}; "
                f"restoring {self.backup_dir.name} also failed: {e}"
            )
        logger.warning(f"[{self.target.name}] Promotion failed, previous bundles restored")

    def cleanup(self) -> None:
        if self.staging_dir.exists():
            shutil.rmtree(self.staging_dir, ignore_errors=True)

    async def run(self) -> TargetResult:
        logger.info(f"Bundling: {self.target.name}")
        try:
            self._enter(TargetState.PREPARING)
            await asyncio.to_thread(self.prepare)

            self._enter(TargetState.BUILDING)
            compiled = await self.build()

            self._enter(TargetState.SWAPPING)
            await asyncio.to_thread(self.swap)
            self.promoted = True

            self._enter(TargetState.CONFIG_INJECTION)
            fragment = build_config_fragment(compiled, self.system_minified)
            await asyncio.to_thread(inject_config, self.target.root_path, fragment)

            self._enter(TargetState.DONE)
            return TargetResult(
                target=self.target, state=self.state, bundles=[c.filename for c in compiled], promoted=True
            )
        except Exception as e:
            failed_in = self.state
            self._enter(TargetState.FAILED)
            logger.error(f"❌ Error in {self.target.name} while {failed_in.value}: {e}")
            await asyncio.to_thread(self.cleanup)
            return TargetResult(
                target=self.target, state=self.state, promoted=self.promoted, error=f"{failed_in.value}: {e}"
            )


async def deploy_targets(
    targets: Sequence[DeploymentTarget],
    bundles: Sequence[BundleDefinition],
    options: BundleOptions,
    rename: Rename = os.rename,
) -> List[TargetResult]:
    """Deploy every target concurrently; each target's failure is captured in its own result."""
    deployments = [TargetDeployment(target, bundles, options, rename) for target in targets]
    return list(await asyncio.gather(*(deployment.run() for deployment in deployments)))


async def run_bundle(
    project_root: Path,
    bundles: Sequence[BundleDefinition],
    options: Optional[BundleOptions] = None,
    theme_glob: Optional[str] = None,
    rename: Rename = os.rename,
) -> RunSummary:
    """Bundle and deploy every discovered target, then refresh the integrity manifest once
    for every target whose new bundles went live."""
    options = options or BundleOptions()
    started = time.monotonic()

    targets = discover_targets(project_root, theme_glob)
    logger.info(f"Processing {len(targets)} locales...")

    results = await deploy_targets(targets, bundles, options, rename)

    summary = RunSummary(results=results)
    # A target failing after its swap still serves the new bundles
    promoted = [result.target for result in summary.promoted]
    if promoted:
        try:
            summary.integrity_updates = await asyncio.to_thread(
                update_integrity,
                project_root / STATIC_FRONTEND,
                promoted,
                [bundle.name for bundle in bundles],
            )
        except (OSError, ValueError) as e:
            logger.error(f"❌ Failed to update SRI hashes: {e}")

    summary.elapsed_seconds = time.monotonic() - started
    logger.info(f"Done in {summary.elapsed_seconds:.1f}s.")
    return summary
