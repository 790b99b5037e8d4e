from .javascript import (
    TreeSitterParser,
    find_property,
    is_member_call,
    iter_calls,
    iter_nodes,
    literal_value,
    named_arguments,
    node_text,
    parse_source,
    property_key,
    string_value,
)

__all__ = [
    "TreeSitterParser",
    "find_property",
    "is_member_call",
    "iter_calls",
    "iter_nodes",
    "literal_value",
    "named_arguments",
    "node_text",
    "parse_source",
    "property_key",
    "string_value",
]
