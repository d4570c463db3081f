"""
Domain Entity: StructuredKey

A sorted-set key that encodes a series group and its columns:

    <anything><marker><prefix><marker><col1>,<col2>,...

Each column's public name is prefix + column.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

DEFAULT_MARKER = "_RedisTS_"


@dataclass(frozen=True)
class StructuredKey:
    """Decomposed structured key."""

    key: str
    prefix: str
    columns: Tuple[str, ...]

    @classmethod
    def parse(cls, key: str, marker: str = DEFAULT_MARKER) -> Optional["StructuredKey"]:
        """
        Decompose a key name into prefix and columns.

        Args:
            key: Raw key name
            marker: Text separating the key's parts

        Returns:
            StructuredKey, or None when the marker does not appear twice
        """
        first = key.find(marker)
        if first == -1:
            return None
        prefix_start = first + len(marker)
        prefix_end = key.find(marker, prefix_start)
        if prefix_end == -1:
            return None

        prefix = key[prefix_start:prefix_end]
        columns = tuple(key[prefix_end + len(marker):].split(","))
        return cls(key=key, prefix=prefix, columns=columns)

    @property
    def column_names(self) -> List[str]:
        return [self.prefix + column for column in self.columns]

    def select(self, pattern: Optional[str] = None) -> List[Tuple[int, str]]:
        """
        Pick the columns whose full name matches a regular expression.

        Args:
            pattern: Regex matched against the whole column name, or None for all

        Returns:
            (position in the member's value list, column name) pairs in key order
        """
        names = self.column_names
        if pattern is None:
            return list(enumerate(names))
        regex = re.compile(pattern)
        return [(pos, name) for pos, name in enumerate(names) if regex.fullmatch(name)]
