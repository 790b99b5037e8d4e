from .compressor import compress_file
from .minifier import RESERVED_IDENTIFIERS, Minifier
from .normalizer import classify_module, normalize, normalize_module
from .processor import BuildContext, process_bundle, resolve_file
from .version_map import VersionMap, extract_version_map, load_version_map

__all__ = [
    "RESERVED_IDENTIFIERS",
    "BuildContext",
    "Minifier",
    "VersionMap",
    "classify_module",
    "compress_file",
    "extract_version_map",
    "load_version_map",
    "normalize",
    "normalize_module",
    "process_bundle",
    "resolve_file",
]
