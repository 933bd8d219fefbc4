import random

import pytest

from dalight.adder import NmtNodeAdder
from dalight.nmtnode import NAMESPACE_SIZE, NMT_HASH_SIZE, cid_from_namespaced_sha256
from dalight.quadrant import Quadrant, batch_size, new_quadrants
from dalight.share import SHARE_SIZE, nmt_root


def rand_roots(count, seed):
    rng = random.Random(seed)
    return [rng.randbytes(NMT_HASH_SIZE) for _ in range(count)]


def test_new_quadrants_cover_all_positions():
    rows, cols = rand_roots(8, 1), rand_roots(8, 2)
    quadrants = new_quadrants(rows, cols, random.Random(0))
    assert len(quadrants) == 8
    keys = {(q.source, q.x, q.y) for q in quadrants}
    assert keys == {(s, x, y) for s in (0, 1) for x in (0, 1) for y in (0, 1)}


def test_new_quadrants_roots():
    rows, cols = rand_roots(8, 3), rand_roots(8, 4)
    row_cids = [cid_from_namespaced_sha256(r) for r in rows]
    col_cids = [cid_from_namespaced_sha256(c) for c in cols]
    for q in new_quadrants(rows, cols, random.Random(1)):
        source = row_cids if q.source == 0 else col_cids
        assert q.roots == source[4 * q.y : 4 * (q.y + 1)]


def test_new_quadrants_seeded_order_is_reproducible():
    rows, cols = rand_roots(4, 5), rand_roots(4, 6)
    first = new_quadrants(rows, cols, random.Random(42))
    second = new_quadrants(rows, cols, random.Random(42))
    assert [(q.source, q.x, q.y) for q in first] == [(q.source, q.x, q.y) for q in second]


def test_new_quadrants_without_rng():
    quadrants = new_quadrants(rand_roots(4, 7), rand_roots(4, 8))
    assert sorted((q.source, q.x, q.y) for q in quadrants) == sorted(
        (s, x, y) for s in (0, 1) for x in (0, 1) for y in (0, 1)
    )


def test_new_quadrants_rejects_bad_root():
    with pytest.raises(ValueError):
        new_quadrants([b"short"] * 2, rand_roots(2, 9))


@pytest.mark.parametrize("size", [1, 2, 4])
def test_index_row_quadrant_points_to_row_and_column(size):
    width = size * 2
    roots = rand_roots(width, size)
    for q in new_quadrants(roots, roots, random.Random(0)):
        for i in range(size):
            for j in range(size):
                row, col = divmod(q.index(i, j), width)
                if q.source == 0:
                    assert (row, col) == (q.y * size + i, q.x * size + j)
                else:
                    assert (row, col) == (q.x * size + j, q.y * size + i)


@pytest.mark.parametrize("source", [0, 1])
def test_index_covers_square_once_per_source(source):
    size = 4
    roots = [cid_from_namespaced_sha256(r) for r in rand_roots(size, 10)]
    indexes = []
    for x in (0, 1):
        for y in (0, 1):
            q = Quadrant(roots, x, y, source)
            indexes.extend(q.index(i, j) for i in range(size) for j in range(size))
    assert sorted(indexes) == list(range((2 * size) ** 2))


@pytest.mark.parametrize("width", [2, 4, 8])
def test_batch_size_counts_blocks_of_square(width):
    rng = random.Random(width)
    grid = []
    for r in range(width):
        row = []
        for c in range(width):
            nid = (r + c).to_bytes(NAMESPACE_SIZE, "big")
            row.append(nid + rng.randbytes(SHARE_SIZE - NAMESPACE_SIZE))
        grid.append(row)
    store = {}
    adder = NmtNodeAdder(store)
    for r in range(width):
        nmt_root([s[:NAMESPACE_SIZE] + s for s in grid[r]], adder.visit)
    for c in range(width):
        column = [grid[r][c] for r in range(width)]
        nmt_root([s[:NAMESPACE_SIZE] + s for s in column], adder.visit)
    adder.commit()
    assert len(store) == batch_size(width)


def test_batch_size_grows_with_square():
    sizes = [batch_size(w) for w in (1, 2, 4, 8, 16)]
    assert sizes == sorted(sizes)
    assert batch_size(1) == 1