"""Build one bundle: resolve -> read -> normalize -> minify -> write -> compress.

Modules that cannot be found or read are skipped with a warning; the bundle is
still produced as long as one module made it in. Output order always equals
declaration order.
"""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from ..constants import READ_BATCH_SIZE, bundle_filename
from ..models import BundleDefinition, BundleOptions, CompiledBundle, ResolvedModule
from .compressor import compress_file
from .minifier import Minifier, MinifyResult
from .normalizer import is_text_resource, normalize
from .reporter import report_bundle_size
from .version_map import VersionMap


@dataclass
class BuildContext:
    """Per-target state shared by every bundle of that target."""

    root: Path
    minified: bool
    version_map: VersionMap


def _strip_script_extension(path: str) -> str:
    for suffix in (".min.js", ".js"):
        if path.endswith(suffix):
            return path[: -len(suffix)]
    return path


def resolve_file(root: Path, module_id: str, mapped: Path, minified: bool) -> Optional[Path]:
    """Physical file for a module, or None.

    Text resources are taken literally. Scripts prefer the variant matching the
    target's minification state and fall back to the other one.
    """
    full_path = Path(os.path.normpath(root / mapped))

    if is_text_resource(module_id, full_path):
        return full_path if full_path.is_file() else None

    base = _strip_script_extension(str(full_path))
    minified_path = Path(f"{base}.min.js")
    standard_path = Path(f"{base}.js")
    candidates = (minified_path, standard_path) if minified else (standard_path, minified_path)

    for candidate in candidates:
        if candidate.is_file():
            if candidate != candidates[0]:
                logger.debug(f"Fallback used for {module_id}: {candidate.name}")
            return candidate
    return None


def _read_and_normalize(module_id: str, path: Path) -> ResolvedModule:
    # Line endings are kept as found; normalization must not move any byte
    source = path.read_bytes().decode("utf-8")
    kind, text = normalize(module_id, source, path)
    return ResolvedModule(id=module_id, absolute_path=path, kind=kind, source_text=text)


async def load_module(
    bundle_name: str, module_id: str, declared_path: str, context: BuildContext, output_dir: Path
) -> Optional[ResolvedModule]:
    try:
        mapped = context.version_map.resolve(declared_path)
        path = await asyncio.to_thread(resolve_file, context.root, module_id, mapped, context.minified)
        if path is None:
            logger.warning(f"Skipping {module_id} in {bundle_name}: file not found ({declared_path})")
            return None

        module = await asyncio.to_thread(_read_and_normalize, module_id, path)
        module.relative_path = Path(os.path.relpath(path, output_dir)).as_posix()
        return module
    except Exception as e:
        logger.warning(f"Skipping {module_id} in {bundle_name}: {e}")
        return None


def _concatenate(sources: Sequence[Tuple[str, str]]) -> MinifyResult:
    return MinifyResult(code="\n".join(text for _, text in sources))


def compile_sources(
    name: str, filename: str, sources: Sequence[Tuple[str, str]], options: BundleOptions
) -> MinifyResult:
    """Minify and/or map the ordered sources, falling back to plain concatenation on failure."""
    if not options.should_minify and not options.source_map:
        return _concatenate(sources)

    minifier = Minifier(
        strategy=options.strategy,
        compress=options.should_minify,
        filename=filename,
        source_map=options.source_map,
    )
    try:
        return minifier.minify(sources)
    except Exception as e:
        logger.error(f"❌ Minification failed for {name}. Writing raw output. Error: {e}")

    if options.source_map:
        return Minifier(compress=False, filename=filename, source_map=True).minify(sources)
    return _concatenate(sources)


async def process_bundle(
    bundle: BundleDefinition, context: BuildContext, output_dir: Path, options: BundleOptions
) -> Optional[CompiledBundle]:
    """Write ``bundle-<name>[.min].js`` plus siblings into ``output_dir``; None for an empty bundle."""
    filename = bundle_filename(bundle.name, context.minified)
    items = list(bundle.modules.items())

    modules: List[ResolvedModule] = []
    for start in range(0, len(items), READ_BATCH_SIZE):
        batch = items[start : start + READ_BATCH_SIZE]
        results = await asyncio.gather(
            *(load_module(bundle.name, module_id, path, context, output_dir) for module_id, path in batch)
        )
        modules.extend(module for module in results if module is not None)

    if not modules:
        logger.warning(f"⚠️  Skipping empty bundle: {filename}")
        return None

    sources = [(module.relative_path, module.source_text) for module in modules]
    result = await asyncio.to_thread(compile_sources, bundle.name, filename, sources, options)

    dest_path = output_dir / filename
    content = result.code.encode("utf-8")
    await asyncio.to_thread(dest_path.write_bytes, content)

    source_map = None
    if result.source_map is not None:
        source_map = result.source_map.encode("utf-8")
        await asyncio.to_thread(dest_path.with_name(f"{filename}.map").write_bytes, source_map)

    gzip_path, brotli_path = await compress_file(dest_path)
    report_bundle_size(dest_path)
    logger.info(f"Generated {filename} ({len(modules)}/{len(items)} modules)")

    return CompiledBundle(
        name=bundle.name,
        filename=filename,
        path=dest_path,
        content=content,
        module_ids=[module.id for module in modules],
        gzip_path=gzip_path,
        brotli_path=brotli_path,
        source_map=source_map,
        minified=context.minified,
    )
