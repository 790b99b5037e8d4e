from .capture import load_capture, sanitize_capture
from .classifier import classify_bundles, clean_module_name
from .loader import load_definitions
from .schema import DefinitionFile
from .writer import write_definitions

__all__ = [
    "DefinitionFile",
    "classify_bundles",
    "clean_module_name",
    "load_capture",
    "load_definitions",
    "sanitize_capture",
    "write_definitions",
]
