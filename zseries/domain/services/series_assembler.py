"""
Domain Service: Series Assembler

Turns the sparse (member, score) pairs of one structured key into dense
vectors aligned to a TimeIndex, one per selected column.
"""

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ..entities import TimeIndex, Vector
from ..errors import ProtocolError


def member_values(member: str) -> List[str]:
    """
    Split a sorted-set member into its column values.

    Members look like "<tag>_<v1>,<v2>,..."; everything up to the first
    underscore is the tag. A member without an underscore is all values.
    """
    head, sep, tail = member.partition("_")
    return (tail if sep else head).split(",")


class SeriesAssembler:
    """Domain service for dense vector reconstruction."""

    def assemble(
        self,
        key: str,
        selection: Sequence[Tuple[int, str]],
        members: Iterable[Tuple[str, float]],
        index: TimeIndex,
    ) -> List[Tuple[str, Vector]]:
        """
        Build one NaN-filled vector per selected column and write observed values.

        Args:
            key: Source key, for error messages
            selection: (value position, column name) pairs to materialize
            members: (member, score) pairs, score in epoch milliseconds
            index: Grid the vectors are aligned to

        Returns:
            (column name, vector) pairs in selection order

        Raises:
            ProtocolError: A member lacks a selected value or it is not numeric
        """
        arrays = np.full((len(selection), index.size), np.nan, dtype=np.float64)

        for member, score in members:
            pos = index.locate(int(score))
            if pos < 0:
                # Off-grid timestamp, nothing to write
                continue
            values = member_values(member)
            try:
                for row, (col_pos, _) in enumerate(selection):
                    arrays[row, pos] = float(values[col_pos])
            except (IndexError, ValueError) as e:
                raise ProtocolError(f"malformed member {member!r} in key {key!r}: {e}") from e

        return [(name, arrays[row].copy()) for row, (_, name) in enumerate(selection)]
