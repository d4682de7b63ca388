from __future__ import annotations
from typing import Dict, Iterator

from .models import Edge


class EdgeDeduper:
    """
    Remembers every edge already drawn.

    Example:
      Both sides of one connection report it, usually on consecutive lines.
      Both lines normalize to the same ordered pair, and only the first one
      should produce an edge.
    """

    def __init__(self):
        # dict keeps first seen order for stable output
        self._edges: Dict[Edge, None] = {}

    def should_emit(self, edge: Edge) -> bool:
        """
        True means the edge is new and has been recorded.
        False means it was already drawn.
        """
        if edge in self._edges:
            return False
        self._edges[edge] = None
        return True

    def __contains__(self, edge: Edge) -> bool:
        return edge in self._edges

    def __iter__(self) -> Iterator[Edge]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)
