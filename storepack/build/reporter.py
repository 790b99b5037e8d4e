"""Size report for generated bundles."""

from pathlib import Path

from loguru import logger


def format_bytes(size: float) -> str:
    if size < 0:
        return "n/a"
    units = ["B", "KB", "MB"]
    index = 0
    while size >= 1024 and index < len(units) - 1:
        size /= 1024
        index += 1
    precision = 0 if index == 0 else 1 if index == 1 else 2
    return f"{size:.{precision}f} {units[index]}"


def _size(path: Path) -> int:
    try:
        return path.stat().st_size
    except OSError:
        return 0


def _saving(raw: int, compressed: int) -> str:
    if raw == 0:
        return "0.0"
    return f"{(1 - compressed / raw) * 100:.1f}"


def size_report(path: Path) -> str:
    raw = _size(path)
    gz = _size(path.with_name(f"{path.name}.gz"))
    br = _size(path.with_name(f"{path.name}.br"))
    return (
        f"raw: {format_bytes(raw)} - gzip: {format_bytes(gz)} (-{_saving(raw, gz)}%)"
        f" - br: {format_bytes(br)} (-{_saving(raw, br)}%)"
    )


def report_bundle_size(path: Path) -> None:
    logger.info(f"   {path.name}: {size_report(path)}")
