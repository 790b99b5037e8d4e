"""Bundle minification strategies.

Minification never renames identifiers. Many names in the storefront are
looked up by string elsewhere in the platform (loader globals, Knockout
bindings, translation helpers), so ``RESERVED_IDENTIFIERS`` are additionally
checked to survive compaction; a bundle failing that check raises
``MinificationError`` and the caller falls back to plain concatenation.

* ``safe``: one pass, only ``debugger`` statements dropped, statement order and
  function names untouched, licence (``/*!``) comments kept.
* ``aggressive``: up to three passes dropping ``console.*`` calls, ``debugger``
  statements and constant ``if`` branches, then compaction without licence
  comments. A branch declaring ``var`` or function names is kept, since those
  names are visible outside it.

Compaction itself (whitespace and comments) is done by rjsmin.
"""

from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence, Set, Tuple

import rjsmin
from tree_sitter import Node as TSNode

from ..errors import MinificationError
from ..models import MinifyStrategy
from ..parser import iter_nodes, node_text, parse_source
from .sourcemap import SourceMapBuilder, source_mapping_comment

RESERVED_IDENTIFIERS: FrozenSet[str] = frozenset(
    [
        # Loader and DOM globals
        "$", "jQuery", "define", "require", "requirejs", "exports", "window", "document", "_",
        # Magento core
        "mage", "Magento", "varien", "varienGlobal",
        # Translation helpers
        "translate", "__", "$t",
        # Knockout
        "ko", "Knockout", "observable", "computed", "observableArray",
    ]
)

_IDENTIFIER_TYPES = ("identifier", "property_identifier", "shorthand_property_identifier")
_STATEMENT_LISTS = ("program", "statement_block", "switch_case", "switch_default", "class_static_block")
# Declarations visible outside the block they appear in
_HOISTED_DECLARATIONS = ("variable_declaration", "function_declaration", "generator_function_declaration")


@dataclass(frozen=True)
class MinifyProfile:
    name: str
    passes: int
    drop_console: bool
    drop_debugger: bool
    dead_code: bool
    keep_bang_comments: bool


PROFILES = {
    MinifyStrategy.SAFE: MinifyProfile(
        name="safe", passes=1, drop_console=False, drop_debugger=True, dead_code=False, keep_bang_comments=True
    ),
    MinifyStrategy.AGGRESSIVE: MinifyProfile(
        name="aggressive", passes=3, drop_console=True, drop_debugger=True, dead_code=True, keep_bang_comments=False
    ),
}


@dataclass
class MinifyResult:
    code: str
    source_map: Optional[str] = None


def _filler(node: TSNode) -> bytes:
    """Replacement for a removed statement: nothing inside statement lists, an empty statement elsewhere."""
    parent = node.parent
    return b"" if parent is None or parent.type in _STATEMENT_LISTS else b";"


def _is_console_statement(node: TSNode) -> bool:
    if node.type != "expression_statement":
        return False
    expression = node.named_children[0] if node.named_children else None
    if expression is None or expression.type != "call_expression":
        return False
    function = expression.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return False
    obj = function.child_by_field_name("object")
    return obj is not None and obj.type == "identifier" and node_text(obj) == "console"


def _constant_condition(node: TSNode) -> Optional[bool]:
    condition = node.child_by_field_name("condition")
    if condition is None:
        return None
    inner = [child for child in condition.named_children if child.type != "comment"]
    if len(inner) != 1:
        return None
    expression = inner[0]
    if expression.type == "true":
        return True
    if expression.type == "false":
        return False
    if expression.type == "number" and node_text(expression) in ("0", "1"):
        return node_text(expression) == "1"
    if expression.type == "unary_expression":
        operator = expression.child_by_field_name("operator")
        argument = expression.child_by_field_name("argument")
        if operator is not None and node_text(operator) == "!" and argument is not None:
            if argument.type == "number" and node_text(argument) in ("0", "1"):
                return node_text(argument) == "0"
    return None


def _declares_hoisted(node: Optional[TSNode]) -> bool:
    return node is not None and any(child.type in _HOISTED_DECLARATIONS for child in iter_nodes(node))


def _dropped_branch(node: TSNode, condition: bool) -> Optional[TSNode]:
    return node.child_by_field_name("alternative" if condition else "consequence")


def _kept_branch(node: TSNode, condition: bool) -> Optional[TSNode]:
    if condition:
        return node.child_by_field_name("consequence")
    alternative = node.child_by_field_name("alternative")
    if alternative is None:
        return None
    statements = [child for child in alternative.named_children if child.type != "comment"]
    return statements[0] if statements else None


def _strip_pass(encoded: bytes, profile: MinifyProfile) -> Tuple[bytes, bool]:
    """One transformation pass; returns the new source and whether anything changed."""
    root = parse_source(encoded).root_node
    edits: List[Tuple[int, int, bytes]] = []

    stack = [root]
    while stack:
        node = stack.pop()
        if profile.drop_debugger and node.type == "debugger_statement":
            edits.append((node.start_byte, node.end_byte, _filler(node)))
            continue
        if profile.drop_console and _is_console_statement(node):
            edits.append((node.start_byte, node.end_byte, _filler(node)))
            continue
        if profile.dead_code and node.type == "if_statement" and not node.has_error:
            condition = _constant_condition(node)
            if condition is not None and not _declares_hoisted(_dropped_branch(node, condition)):
                kept = _kept_branch(node, condition)
                if kept is None:
                    edits.append((node.start_byte, node.end_byte, _filler(node)))
                    continue
                edits.append((node.start_byte, kept.start_byte, b""))
                edits.append((kept.end_byte, node.end_byte, b""))
                stack.append(kept)
                continue
        stack.extend(reversed(node.children))

    if not edits:
        return encoded, False

    for start, end, replacement in sorted(edits, key=lambda edit: edit[0], reverse=True):
        encoded = encoded[:start] + replacement + encoded[end:]
    return encoded, True


def _reserved_in(encoded: bytes) -> Set[str]:
    root = parse_source(encoded).root_node
    found = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type in _IDENTIFIER_TYPES:
            name = node_text(node)
            if name in RESERVED_IDENTIFIERS:
                found.add(name)
        stack.extend(node.children)
    return found


class Minifier:
    """Concatenates module sources, optionally compacting them and emitting a source map.

    With ``compress=False`` the sources are joined unchanged and readable,
    which is how aligned source maps are produced for unminified bundles.
    """

    def __init__(
        self,
        strategy: MinifyStrategy = MinifyStrategy.SAFE,
        compress: bool = True,
        filename: Optional[str] = None,
        source_map: bool = False,
    ) -> None:
        self.profile = PROFILES[MinifyStrategy(strategy)]
        self.compress = compress
        self.filename = filename or "bundle.js"
        self.source_map = source_map

    def minify_source(self, source: str) -> str:
        """Transform and compact one module source."""
        encoded = source.encode("utf-8")
        had_errors = parse_source(encoded).root_node.has_error

        for _ in range(self.profile.passes):
            encoded, changed = _strip_pass(encoded, self.profile)
            if not changed:
                break

        reserved_before = _reserved_in(encoded)
        compacted = rjsmin.jsmin(encoded, keep_bang_comments=self.profile.keep_bang_comments)

        if not had_errors and parse_source(compacted).root_node.has_error:
            raise MinificationError("compacted output does not parse")
        missing = reserved_before - _reserved_in(compacted)
        if missing:
            raise MinificationError(f"reserved identifiers lost: {', '.join(sorted(missing))}")
        return compacted.decode("utf-8")

    def minify(self, sources: Sequence[Tuple[str, str]]) -> MinifyResult:
        """Build a bundle from ``(relative path, source)`` pairs, keeping their order."""
        builder = SourceMapBuilder(self.filename) if self.source_map else None
        chunks = []

        for index, (path, source) in enumerate(sources):
            output = self.minify_source(source) if self.compress else source
            chunks.append(output)
            if builder is None:
                continue
            builder.add_source(path, source)
            for line_number in range(output.count("\n") + 1):
                # Compacted code keeps no line structure worth mapping beyond the module start
                builder.map_line(index, line_number if not self.compress else 0)

        code = "\n".join(chunks)
        if builder is None:
            return MinifyResult(code=code)
        return MinifyResult(
            code=f"{code}\n{source_mapping_comment(self.filename)}\n",
            source_map=builder.to_json(),
        )
