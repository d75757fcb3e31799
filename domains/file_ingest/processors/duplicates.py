"""Per-batch Envelope ID disambiguation."""

from __future__ import annotations

from typing import Dict


class DuplicateResolver:
    """
    Hands out duplicate suffixes for record ids in order of appearance.

    The first occurrence of an id gets 0 (no suffix in the file name), the
    nth repeat gets n. One instance covers exactly one batch and must be fed
    rows in file order.
    """

    def __init__(self) -> None:
        self._counts: Dict[str, int] = {}

    def resolve(self, record_id: str) -> int:
        """Return the suffix for this occurrence of ``record_id``."""
        if record_id in self._counts:
            self._counts[record_id] += 1
        else:
            self._counts[record_id] = 0
        return self._counts[record_id]

    @property
    def tally(self) -> Dict[str, int]:
        """Copy of the current id -> count mapping."""
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)
