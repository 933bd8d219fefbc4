"""Walks over Namespaced Merkle Trees kept as IPLD blocks."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait

from .nmtnode import (
    NAMESPACE_SIZE,
    Cid,
    NmtLeafNode,
    NmtNode,
    get_node,
    namespaced_sha256_from_cid,
)
from .share import MAX_SQUARE_SIZE, ShareWithProof, new_share_with_proof, sanity_check_nid

# Number of squares that may be fetched at the same time.
NUM_CONCURRENT_SQUARES = 8
# Upper bound on workers fetching shares at once.
NUM_WORKERS_LIMIT = MAX_SQUARE_SIZE * MAX_SQUARE_SIZE // 2 * NUM_CONCURRENT_SQUARES

Blocks = Mapping[Cid, bytes]
Node = NmtNode | NmtLeafNode


def leaf_to_share(node: Node) -> bytes:
    """Strip the node type byte and the prepended namespace from a leaf."""
    return node.raw_data()[1 + NAMESPACE_SIZE :]


def get_leaf(blocks: Blocks, root: Cid, leaf: int, total: int) -> Node:
    """Walk down the tree under ``root`` to the leaf at index ``leaf``."""
    while True:
        node = get_node(blocks, root)
        links = node.links()
        if len(links) == 1:
            return get_node(blocks, links[0].cid)
        total //= 2
        if leaf < total:
            root = links[0].cid
        else:
            root, leaf = links[1].cid, leaf - total


def get_share(blocks: Blocks, root: Cid, leaf_index: int, total_leafs: int) -> bytes:
    """Fetch the share at ``leaf_index`` of the tree under ``root``."""
    return leaf_to_share(get_leaf(blocks, root, leaf_index, total_leafs))


def get_proof(blocks: Blocks, root: Cid, leaf: int, total: int) -> list[Cid]:
    """Collect the sibling CIDs on the path from ``root`` to the leaf.

    Right siblings come first, top-down, followed by left siblings, bottom-up.
    """
    rights: list[Cid] = []
    lefts: list[Cid] = []
    while True:
        node = get_node(blocks, root)
        links = node.links()
        if len(links) == 1:
            return rights + lefts[::-1]
        total //= 2
        if leaf < total:
            rights.append(links[1].cid)
            root = links[0].cid
        else:
            lefts.append(links[0].cid)
            root, leaf = links[1].cid, leaf - total


def get_proofs_for_shares(
    blocks: Blocks, root: Cid, shares: Sequence[bytes | None]
) -> list[ShareWithProof | None]:
    """Build a proof for every non-None entry of ``shares``, by position."""
    total = len(shares)
    proofs: list[ShareWithProof | None] = []
    for index, share in enumerate(shares):
        if share is None:
            proofs.append(None)
            continue
        leaf = get_leaf(blocks, root, index, total)
        path = get_proof(blocks, root, index, total)
        proofs.append(new_share_with_proof(index, leaf.raw_data()[1:], path))
    return proofs


def get_leaves_by_namespace(blocks: Blocks, root: Cid, nid: bytes) -> list[Node]:
    """All leaves under ``root`` with namespace ``nid``; empty if there are none."""
    sanity_check_nid(nid)
    nid = bytes(nid)
    root_hash = namespaced_sha256_from_cid(root)
    size = len(nid)
    if nid < root_hash[:size] or nid > root_hash[size : 2 * size]:
        return []
    node = get_node(blocks, root)
    links = node.links()
    if len(links) == 1:
        return [node]
    out: list[Node] = []
    for link in links:
        out.extend(get_leaves_by_namespace(blocks, link.cid, nid))
    return out


def get_shares_by_namespace(blocks: Blocks, root: Cid, nid: bytes) -> list[bytes]:
    """All shares under ``root`` with namespace ``nid``."""
    return [leaf_to_share(leaf) for leaf in get_leaves_by_namespace(blocks, root, nid)]


def get_shares(
    blocks: Blocks, root: Cid, shares: int, put: Callable[[int, bytes], None]
) -> None:
    """Fetch every reachable share of the tree under ``root`` concurrently.

    Each share found is passed to ``put(position, share)``; ``put`` may be
    called from worker threads. Missing or malformed blocks are skipped so
    that as many shares as possible are fetched.
    """

    def process(cid: Cid, pos: int) -> list[tuple[Cid, int]]:
        try:
            node = get_node(blocks, cid)
        except (LookupError, ValueError):
            return []
        links = node.links()
        if len(links) == 1:
            try:
                leaf = get_node(blocks, links[0].cid)
            except (LookupError, ValueError):
                return []
            put(pos, leaf_to_share(leaf))
            return []
        return [(link.cid, pos * 2 + i) for i, link in enumerate(links)]

    workers = max(1, min(NUM_WORKERS_LIMIT, (shares + 1) // 2))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        pending: set[Future[list[tuple[Cid, int]]]] = {executor.submit(process, root, 0)}
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                for child, pos in future.result():
                    pending.add(executor.submit(process, child, pos))