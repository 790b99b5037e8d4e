"""Rewrite any module source into a single named AMD definition.

Four source forms are recognised, first match wins:

1. Text resource: templates, JSON, styles, or anything loaded through a
   plugin (``text!...``). Wrapped in a definition returning the content.
2. Legacy script: no ``define`` call anywhere. Wrapped in a definition whose
   dependencies and export come from the loader's shim table at runtime.
3. Anonymous definition: ``define([...], factory)``. The module id is inserted
   as first argument; every other byte stays where it was so source maps
   remain aligned.
4. Named definition: ``define('id', ...)``. Returned unchanged.

Module code is parsed, never executed.
"""

import json
from pathlib import Path
from typing import Optional, Tuple

from tree_sitter import Node as TSNode

from ..models import ModuleKind
from ..parser import iter_calls, named_arguments, parse_source

TEXT_EXTENSIONS = (".html", ".htm", ".json", ".css", ".txt", ".svg")

SHIM_LOOKUP = "require.s.contexts._.config.shim[{id}]"

LEGACY_TEMPLATE = """define({id}, ({shim} && {shim}.deps || []), function() {{

{content}

return ({shim} && {shim}.exportsFn && {shim}.exportsFn());
}}.bind(window));"""

TEXT_TEMPLATE = """define({id}, function() {{
    return {content};
}});"""


def quote_id(module_id: str) -> str:
    """Single-quoted JavaScript string literal for a module id."""
    escaped = module_id.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def escape_text(content: str) -> str:
    """Double-quoted JavaScript string literal holding ``content`` exactly.

    Non-ASCII characters are escaped, which also covers U+2028/U+2029, the
    two characters JSON allows in strings but older engines treat as line breaks.
    """
    return json.dumps(content, ensure_ascii=True)


def is_text_resource(module_id: str, path: Optional[Path] = None) -> bool:
    if "!" in module_id:
        return True
    if path is None:
        return False
    return path.name.lower().endswith(TEXT_EXTENSIONS)


def _first_anonymous_define(root: TSNode) -> Optional[TSNode]:
    """First argument node of the first ``define`` call not starting with a string literal."""
    for call in iter_calls(root, "define"):
        arguments = named_arguments(call)
        if arguments and arguments[0].type != "string" and not call.has_error:
            return arguments[0]
    return None


def _inspect(module_id: str, encoded: bytes, path: Optional[Path]) -> Tuple[ModuleKind, Optional[int]]:
    """Classify a module; for anonymous definitions also return the byte offset to insert the id at."""
    if is_text_resource(module_id, path):
        return ModuleKind.TEXT_RESOURCE, None

    root = parse_source(encoded).root_node
    if next(iter_calls(root, "define"), None) is None:
        return ModuleKind.LEGACY_SCRIPT, None
    first_argument = _first_anonymous_define(root)
    if first_argument is not None:
        return ModuleKind.ANONYMOUS_DEFINITION, first_argument.start_byte
    return ModuleKind.NAMED_DEFINITION, None


def classify_module(module_id: str, source: str, path: Optional[Path] = None) -> ModuleKind:
    return _inspect(module_id, source.encode("utf-8"), path)[0]


def wrap_text(module_id: str, content: str) -> str:
    return TEXT_TEMPLATE.format(id=quote_id(module_id), content=escape_text(content))


def wrap_legacy(module_id: str, content: str) -> str:
    quoted = quote_id(module_id)
    return LEGACY_TEMPLATE.format(id=quoted, shim=SHIM_LOOKUP.format(id=quoted), content=content)


def _insert_id(module_id: str, encoded: bytes, offset: int) -> str:
    insertion = f"{quote_id(module_id)}, ".encode("utf-8")
    return (encoded[:offset] + insertion + encoded[offset:]).decode("utf-8")


def normalize(module_id: str, source: str, path: Optional[Path] = None) -> Tuple[ModuleKind, str]:
    """Classify and rewrite a module in one parse."""
    encoded = source.encode("utf-8")
    kind, offset = _inspect(module_id, encoded, path)
    if kind is ModuleKind.TEXT_RESOURCE:
        return kind, wrap_text(module_id, source)
    if kind is ModuleKind.LEGACY_SCRIPT:
        return kind, wrap_legacy(module_id, source)
    if kind is ModuleKind.ANONYMOUS_DEFINITION and offset is not None:
        return kind, _insert_id(module_id, encoded, offset)
    return kind, source


def normalize_module(module_id: str, source: str, path: Optional[Path] = None) -> str:
    return normalize(module_id, source, path)[1]
