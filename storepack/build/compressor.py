"""Pre-compressed siblings (.gz and .br) for a written bundle."""

import asyncio
import gzip
from pathlib import Path
from typing import Tuple

import brotli

CHUNK_SIZE = 64 * 1024

GZIP_LEVEL = 9
BROTLI_QUALITY = 11
BROTLI_LGWIN = 24


def gzip_file(source: Path) -> Path:
    target = source.with_name(f"{source.name}.gz")
    # mtime=0 keeps the archive identical for identical input
    with open(source, "rb") as src, open(target, "wb") as raw:
        with gzip.GzipFile(filename=source.name, mode="wb", compresslevel=GZIP_LEVEL, fileobj=raw, mtime=0) as dst:
            while chunk := src.read(CHUNK_SIZE):
                dst.write(chunk)
    return target


def brotli_file(source: Path) -> Path:
    target = source.with_name(f"{source.name}.br")
    compressor = brotli.Compressor(mode=brotli.MODE_TEXT, quality=BROTLI_QUALITY, lgwin=BROTLI_LGWIN)
    with open(source, "rb") as src, open(target, "wb") as dst:
        while chunk := src.read(CHUNK_SIZE):
            dst.write(compressor.process(chunk))
        dst.write(compressor.finish())
    return target


async def compress_file(source: Path) -> Tuple[Path, Path]:
    """Write ``<file>.gz`` and ``<file>.br`` concurrently, each from its own read stream."""
    gz_path, br_path = await asyncio.gather(
        asyncio.to_thread(gzip_file, source),
        asyncio.to_thread(brotli_file, source),
    )
    return gz_path, br_path
