"""Quadrants of an extended data square, as requested during retrieval."""

from __future__ import annotations

import random
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import timedelta

from .nmtnode import Cid, cid_from_namespaced_sha256

# There are always four quadrants per source.
NUM_QUADRANTS = 4
# Time between new blocks in the network.
BLOCK_TIME = timedelta(minutes=1)
# How long to wait before starting to retrieve another quadrant.
RETRIEVE_QUADRANT_TIMEOUT = BLOCK_TIME / NUM_QUADRANTS * 2

ROW_SOURCE = 0
COLUMN_SOURCE = 1


@dataclass(frozen=True)
class Quadrant:
    """A quarter of the square, reachable through half of the roots of one axis.

    ``source`` is 0 for row roots and 1 for column roots.
    """

    roots: list[Cid]
    x: int
    y: int
    source: int

    def index(self, root_idx: int, cell_idx: int) -> int:
        """Position of a share in the square flattened row by row."""
        size = len(self.roots)
        half_offset_col = (size * 2) ** self.source
        half_offset_row = (size * 2) ** (self.source ^ 1)
        offset_x = self.x * half_offset_col * size
        offset_y = self.y * half_offset_row * size
        return root_idx * half_offset_row + cell_idx * half_offset_col + offset_x + offset_y


def new_quadrants(
    row_roots: Sequence[bytes],
    column_roots: Sequence[bytes],
    rng: random.Random | None = None,
) -> list[Quadrant]:
    """Build the eight quadrants (four per axis) in random order."""
    quadrants: list[Quadrant] = []
    for source, da_roots in enumerate((row_roots, column_roots)):
        qsize = len(da_roots) // 2
        roots = [cid_from_namespaced_sha256(root) for root in da_roots]
        for i in range(NUM_QUADRANTS):
            x, y = i % 2, i // 2
            if source == COLUMN_SOURCE:
                x, y = y, x
            quadrants.append(Quadrant(roots[qsize * y : qsize * (y + 1)], x, y, source))
    shuffle = rng.shuffle if rng is not None else random.shuffle
    shuffle(quadrants)
    return quadrants


def batch_size(square_size: int) -> int:
    """Number of distinct blocks produced by the row and column trees of a square.

    Leaves are shared between row and column trees, so they count once.
    """
    return (square_size * 2 - 1) * square_size * 2 - square_size * square_size