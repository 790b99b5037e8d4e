"""Load bundle definition files without evaluating them.

A definition file is either JSON or a JavaScript document exporting a literal
through ``module.exports = ...`` or ``export default ...``. The exported value
is read from the syntax tree, so any computed expression is rejected.
"""

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from pydantic import ValidationError
from tree_sitter import Node as TSNode

from ..errors import DefinitionError
from ..parser import iter_nodes, literal_value, node_text, parse_source
from .schema import DefinitionFile


def _is_module_exports(node: TSNode) -> bool:
    if node.type != "member_expression":
        return False
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    return obj is not None and prop is not None and node_text(obj) == "module" and node_text(prop) == "exports"


def _find_export(root: TSNode) -> Optional[TSNode]:
    for node in iter_nodes(root):
        if node.type == "assignment_expression":
            left = node.child_by_field_name("left")
            if left is not None and _is_module_exports(left):
                return node.child_by_field_name("right")
        elif node.type == "export_statement" and any(child.type == "default" for child in node.children):
            value = node.child_by_field_name("value") or node.child_by_field_name("declaration")
            if value is not None:
                return value
    return None


def parse_definitions(source: str, filename: str = "<definitions>") -> Any:
    """Return the literal value exported by a JavaScript definition document."""
    tree = parse_source(source)
    if tree.root_node.has_error:
        raise DefinitionError(f"{filename}: not valid JavaScript")

    exported = _find_export(tree.root_node)
    if exported is None:
        raise DefinitionError(f"{filename}: no 'module.exports' or 'export default' found")

    try:
        return literal_value(exported)
    except ValueError as e:
        raise DefinitionError(f"{filename}: exported value must be a literal ({e})")


def load_definitions(path: Path) -> DefinitionFile:
    """Read and validate a definition file.

    Raises:
        DefinitionError: when the file is missing, malformed, or defines no bundles.
    """
    if not path.is_file():
        raise DefinitionError(f"Definition file not found: {path}")

    source = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        try:
            data = json.loads(source)
        except json.JSONDecodeError as e:
            raise DefinitionError(f"{path.name}: invalid JSON ({e})")
    else:
        data = parse_definitions(source, path.name)

    if isinstance(data, list):
        data = {"bundles": data}
    if not isinstance(data, dict):
        raise DefinitionError(f"{path.name}: expected a list of bundles or an object with 'bundles'")

    try:
        definitions = DefinitionFile.model_validate(data)
    except ValidationError as e:
        raise DefinitionError(f"{path.name}: {e}")

    names = [bundle.name for bundle in definitions.bundles]
    duplicates = sorted({name for name in names if names.count(name) > 1})
    if duplicates:
        raise DefinitionError(f"{path.name}: duplicate bundle names {', '.join(duplicates)}")

    logger.debug(f"Loaded {len(names)} bundle definitions from {path}")
    return definitions
