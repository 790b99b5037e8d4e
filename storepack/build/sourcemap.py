"""Source Map v3 generation for concatenated bundles.

Bundles are built by joining module texts with newlines, so every generated
line maps back to one line of one module. Mappings are line granular: each
generated line gets a single segment at column 0.
"""

import json
from dataclasses import dataclass, field
from typing import List, Optional

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def encode_vlq(value: int) -> str:
    """Base64 VLQ encoding used by the ``mappings`` field."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded = ""
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        encoded += _BASE64[digit]
        if not vlq:
            return encoded


@dataclass
class SourceMapBuilder:
    """Collects one segment per generated line and serialises the map."""

    filename: str
    sources: List[str] = field(default_factory=list)
    sources_content: List[str] = field(default_factory=list)
    _lines: List[Optional[tuple]] = field(default_factory=list)

    def add_source(self, path: str, content: str) -> int:
        self.sources.append(path)
        self.sources_content.append(content)
        return len(self.sources) - 1

    def map_line(self, source_index: int, source_line: int) -> None:
        """Map the next generated line to ``source_line`` (0-based) of a source."""
        self._lines.append((source_index, source_line))

    def skip_line(self) -> None:
        self._lines.append(None)

    def mappings(self) -> str:
        groups = []
        prev_source = prev_line = 0
        for entry in self._lines:
            if entry is None:
                groups.append("")
                continue
            source_index, source_line = entry
            groups.append(
                encode_vlq(0)
                + encode_vlq(source_index - prev_source)
                + encode_vlq(source_line - prev_line)
                + encode_vlq(0)
            )
            prev_source, prev_line = source_index, source_line
        return ";".join(groups)

    def to_json(self) -> str:
        return json.dumps(
            {
                "version": 3,
                "file": self.filename,
                "sources": self.sources,
                "sourcesContent": self.sources_content,
                "names": [],
                "mappings": self.mappings(),
            }
        )


def source_mapping_comment(filename: str) -> str:
    return f"//# sourceMappingURL={filename}.map"
