"""Tree-sitter based JavaScript parsing helpers.

Only syntax is inspected: sources are parsed, walked for call expressions and
literals, and never executed. The tree-sitter JavaScript grammar accepts both
ES module and classic script syntax, so module files and legacy scripts go
through the same parser.
"""

from typing import Any, Iterator, List, Optional, Sequence, Union

import tree_sitter_javascript
from tree_sitter import Language, Parser, Tree
from tree_sitter import Node as TSNode

JAVASCRIPT = Language(tree_sitter_javascript.language())

_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_LINE_CONTINUATIONS = ("\r\n", "\n", "\r", "\u2028", "\u2029")


class TreeSitterParser:
    """Thin wrapper around a tree-sitter parser bound to the JavaScript grammar.

    Parser instances are not shared between threads; create one per task.
    """

    def __init__(self) -> None:
        self._parser = Parser(JAVASCRIPT)

    def get_language(self) -> str:
        return "javascript"

    def parse(self, source: Union[str, bytes]) -> Tree:
        if isinstance(source, str):
            source = source.encode("utf-8")
        return self._parser.parse(source)


def parse_source(source: Union[str, bytes]) -> Tree:
    """Parse a JavaScript document with a fresh parser."""
    return TreeSitterParser().parse(source)


def node_text(node: TSNode) -> str:
    return node.text.decode("utf-8") if node.text is not None else ""


def iter_nodes(root: TSNode) -> Iterator[TSNode]:
    """Yield every node below ``root`` in document (pre-)order without recursion."""
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def named_arguments(call: TSNode) -> List[TSNode]:
    """Arguments of a call expression, comments excluded."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def iter_calls(root: TSNode, callee: str) -> Iterator[TSNode]:
    """Yield calls of a bare identifier, e.g. every ``define(...)``."""
    for node in iter_nodes(root):
        if node.type != "call_expression":
            continue
        function = node.child_by_field_name("function")
        if function is not None and function.type == "identifier" and node_text(function) == callee:
            yield node


def is_member_call(call: TSNode, objects: Sequence[str], prop: str) -> bool:
    """Check for ``<object>.<prop>(...)`` with a non-computed property, e.g. ``require.config``."""
    function = call.child_by_field_name("function")
    if function is None or function.type != "member_expression":
        return False
    obj = function.child_by_field_name("object")
    attr = function.child_by_field_name("property")
    if obj is None or attr is None or attr.type != "property_identifier":
        return False
    return obj.type == "identifier" and node_text(obj) in objects and node_text(attr) == prop


def _unescape(sequence: str) -> str:
    body = sequence[1:]
    if not body:
        return ""
    if body.startswith(_LINE_CONTINUATIONS):
        return ""
    head = body[0]
    if head == "u":
        if body.startswith("u{"):
            return chr(int(body[2:-1], 16))
        return chr(int(body[1:5], 16))
    if head == "x":
        return chr(int(body[1:3], 16))
    return _SIMPLE_ESCAPES.get(head, head)


def string_value(node: Optional[TSNode]) -> Optional[str]:
    """Decoded value of a string literal (or a template without substitutions), else None."""
    if node is None or node.type not in ("string", "template_string"):
        return None
    parts = []
    for child in node.children:
        if child.type == "string_fragment":
            parts.append(node_text(child))
        elif child.type == "escape_sequence":
            parts.append(_unescape(node_text(child)))
        elif child.type == "template_substitution":
            return None
    value = "".join(parts)
    # Re-join escaped surrogate pairs such as \ud83d\ude00
    return value.encode("utf-16", "surrogatepass").decode("utf-16")


def property_key(pair: TSNode) -> Optional[str]:
    """Static key of an object ``pair``; computed keys yield None."""
    if pair.type != "pair":
        return None
    key = pair.child_by_field_name("key")
    if key is None:
        return None
    if key.type == "property_identifier":
        return node_text(key)
    if key.type == "string":
        return string_value(key)
    if key.type == "number":
        return node_text(key)
    return None


def find_property(obj: Optional[TSNode], name: str) -> Optional[TSNode]:
    """Value node of property ``name`` in an object literal."""
    if obj is None or obj.type != "object":
        return None
    for pair in obj.named_children:
        if property_key(pair) == name:
            return pair.child_by_field_name("value")
    return None


def _number_value(text: str) -> Union[int, float]:
    try:
        return int(text, 0)
    except ValueError:
        return float(text.replace("_", ""))


def literal_value(node: TSNode) -> Any:
    """Convert a literal expression (object, array, string, number, boolean, null) to Python.

    Raises:
        ValueError: if the expression is not a pure literal.
    """
    kind = node.type
    if kind == "parenthesized_expression":
        inner = [child for child in node.named_children if child.type != "comment"]
        if len(inner) == 1:
            return literal_value(inner[0])
    if kind in ("string", "template_string"):
        value = string_value(node)
        if value is None:
            raise ValueError(f"template literal with substitutions at line {node.start_point[0] + 1}")
        return value
    if kind == "number":
        return _number_value(node_text(node))
    if kind == "unary_expression":
        operator = node.child_by_field_name("operator")
        argument = node.child_by_field_name("argument")
        if operator is not None and argument is not None and argument.type == "number":
            sign = node_text(operator)
            if sign in ("-", "+"):
                value = _number_value(node_text(argument))
                return -value if sign == "-" else value
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind in ("null", "undefined"):
        return None
    if kind == "array":
        return [literal_value(child) for child in node.named_children if child.type != "comment"]
    if kind == "object":
        result = {}
        for child in node.named_children:
            if child.type == "comment":
                continue
            key = property_key(child)
            if key is None:
                raise ValueError(f"unsupported object member '{child.type}' at line {child.start_point[0] + 1}")
            result[key] = literal_value(child.child_by_field_name("value"))
        return result
    raise ValueError(f"unsupported expression '{kind}' at line {node.start_point[0] + 1}")
