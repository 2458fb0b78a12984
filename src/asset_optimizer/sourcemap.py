"""Source map (revision 3) generation."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

_BASE64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"


def encode_vlq(value: int) -> str:
    """Encode one signed integer as a base64 VLQ string."""
    vlq = ((-value) << 1) | 1 if value < 0 else value << 1
    encoded: list[str] = []
    while True:
        digit = vlq & 0b11111
        vlq >>= 5
        if vlq:
            digit |= 0b100000
        encoded.append(_BASE64[digit])
        if not vlq:
            return "".join(encoded)


@dataclass(frozen=True, order=True)
class Mapping:
    """One generated position mapped back to the source (0-based)."""

    generated_line: int
    generated_column: int
    source_line: int
    source_column: int
    source_index: int = 0


class SourceMapBuilder:
    """Collect mappings and serialize them as a v3 source map dict."""

    def __init__(self, file: str, sources: Sequence[str]) -> None:
        self.file = file
        self.sources = list(sources)
        self._mappings: list[Mapping] = []

    def add(
        self,
        generated_line: int,
        generated_column: int,
        source_line: int,
        source_column: int,
        source_index: int = 0,
    ) -> None:
        self._mappings.append(
            Mapping(generated_line, generated_column, source_line, source_column, source_index)
        )

    def __len__(self) -> int:
        return len(self._mappings)

    def encode_mappings(self) -> str:
        lines: list[str] = []
        previous_source = 0
        previous_source_line = 0
        previous_source_column = 0
        ordered = sorted(set(self._mappings))
        index = 0
        last_line = ordered[-1].generated_line if ordered else -1
        for line in range(last_line + 1):
            segments: list[str] = []
            previous_column = 0
            while index < len(ordered) and ordered[index].generated_line == line:
                mapping = ordered[index]
                segments.append(
                    encode_vlq(mapping.generated_column - previous_column)
                    + encode_vlq(mapping.source_index - previous_source)
                    + encode_vlq(mapping.source_line - previous_source_line)
                    + encode_vlq(mapping.source_column - previous_source_column)
                )
                previous_column = mapping.generated_column
                previous_source = mapping.source_index
                previous_source_line = mapping.source_line
                previous_source_column = mapping.source_column
                index += 1
            lines.append(",".join(segments))
        return ";".join(lines)

    def to_dict(self) -> dict[str, object]:
        return {
            "version": 3,
            "file": self.file,
            "sources": list(self.sources),
            "names": [],
            "mappings": self.encode_mappings(),
        }
