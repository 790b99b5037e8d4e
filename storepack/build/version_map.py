"""Version-hash indirection read from the deployed ``requirejs-map`` file.

Magento can publish a ``requirejs-map.js`` holding::

    require.config({config: {baseUrlInterceptor: {"jquery/ui.js": "../../../../_cache/abc123/"}}});

A module listed there lives under ``<locale root>/<segment>/<logical path>``
instead of ``<locale root>/<logical path>``. The file's formatting is not under
our control, so it is parsed rather than pattern-matched. Reading it is best
effort: anything unexpected leaves the identity mapping in place.
"""

from pathlib import Path
from typing import Dict, Optional

from loguru import logger
from tree_sitter import Node as TSNode

from ..constants import REQUIREJS_MAP, REQUIREJS_MAP_MIN
from ..parser import find_property, is_member_call, iter_nodes, named_arguments, parse_source, property_key, string_value

VERSION_MAP_KEY = "baseUrlInterceptor"
_CONFIG_CALLERS = ("require", "requirejs")


def _string_entries(obj: TSNode) -> Dict[str, str]:
    entries: Dict[str, str] = {}
    for pair in obj.named_children:
        key = property_key(pair)
        if key is None:
            continue
        value = string_value(pair.child_by_field_name("value"))
        if value is not None:
            entries[key] = value
    return entries


def extract_version_map(source: str) -> Dict[str, str]:
    """Return the string entries of ``config.baseUrlInterceptor`` from a ``require.config`` call."""
    tree = parse_source(source)
    if tree.root_node.has_error:
        logger.debug("Unable to parse requirejs map file, ignoring version map")
        return {}

    for node in iter_nodes(tree.root_node):
        if node.type != "call_expression" or not is_member_call(node, _CONFIG_CALLERS, "config"):
            continue
        arguments = named_arguments(node)
        if not arguments or arguments[0].type != "object":
            continue
        interceptor = find_property(find_property(arguments[0], "config"), VERSION_MAP_KEY)
        if interceptor is not None and interceptor.type == "object":
            return _string_entries(interceptor)
    return {}


class VersionMap:
    """Resolves logical module paths of one deployment target to physical paths."""

    def __init__(self, root: Path, entries: Optional[Dict[str, str]] = None) -> None:
        self.root = root
        self.entries = dict(entries or {})

    def resolve(self, logical_path: str) -> Path:
        segment = self.entries.get(logical_path)
        if not segment:
            return self.root / logical_path
        return self.root / segment / logical_path

    def __len__(self) -> int:
        return len(self.entries)


def load_version_map(root: Path, minified: bool) -> VersionMap:
    """Build the VersionMap of a locale root; identity when no map file is deployed."""
    map_file = root / (REQUIREJS_MAP_MIN if minified else REQUIREJS_MAP)
    if not map_file.is_file():
        return VersionMap(root)

    try:
        entries = extract_version_map(map_file.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {map_file.name}: {e}")
        entries = {}

    if entries:
        logger.debug(f"Loaded {len(entries)} versioned paths from {map_file.name}")
    return VersionMap(root, entries)
