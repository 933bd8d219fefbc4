"""Shares, namespaced Merkle hashing and share inclusion proofs."""

from __future__ import annotations

import hashlib
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .nmtnode import (
    LEAF_PREFIX,
    NAMESPACE_SIZE,
    NMT_HASH_SIZE,
    NODE_PREFIX,
    Cid,
    namespaced_sha256_from_cid,
)

# Maximum size supported for an unerasured data square.
MAX_SQUARE_SIZE = 128
# Size of a share, including both data and namespace ID.
SHARE_SIZE = 256
# Namespace given to parity shares; ignored when computing a node's max namespace.
PARITY_NAMESPACE = b"\xff" * NAMESPACE_SIZE

Visitor = Callable[..., None]


def share_id(share: bytes) -> bytes:
    """Namespace ID of the share."""
    return bytes(share[:NAMESPACE_SIZE])


def share_data(share: bytes) -> bytes:
    """Data of the share, without its namespace ID."""
    return bytes(share[NAMESPACE_SIZE:])


def sanity_check_nid(nid: bytes) -> None:
    """Raise ValueError unless ``nid`` has the system-wide namespace size."""
    if len(nid) != NAMESPACE_SIZE:
        raise ValueError(f"expected namespace ID of size {NAMESPACE_SIZE}, got {len(nid)}")


def hash_leaf(ndata: bytes) -> bytes:
    """Namespaced hash of a leaf whose data starts with its namespace ID."""
    ndata = bytes(ndata)
    if len(ndata) < NAMESPACE_SIZE:
        raise ValueError(f"leaf data shorter than namespace size {NAMESPACE_SIZE}")
    nid = ndata[:NAMESPACE_SIZE]
    return nid + nid + hashlib.sha256(bytes([LEAF_PREFIX]) + ndata).digest()


def hash_node(left: bytes, right: bytes, ignore_max_namespace: bool = True) -> bytes:
    """Namespaced hash of an inner node over two namespaced child hashes."""
    left, right = bytes(left), bytes(right)
    for child in (left, right):
        if len(child) != NMT_HASH_SIZE:
            raise ValueError(
                f"invalid namespaced hash length, got: {len(child)}, want: {NMT_HASH_SIZE}"
            )
    ns = NAMESPACE_SIZE
    left_min, left_max = left[:ns], left[ns : 2 * ns]
    right_min, right_max = right[:ns], right[ns : 2 * ns]
    min_ns = min(left_min, right_min)
    if ignore_max_namespace and left_min == PARITY_NAMESPACE:
        max_ns = PARITY_NAMESPACE
    elif ignore_max_namespace and right_min == PARITY_NAMESPACE:
        max_ns = left_max
    else:
        max_ns = max(left_max, right_max)
    return min_ns + max_ns + hashlib.sha256(bytes([NODE_PREFIX]) + left + right).digest()


def _split_point(length: int) -> int:
    """Largest power of two strictly less than ``length``."""
    if length < 1:
        raise ValueError("trying to split a tree with size < 1")
    k = 1 << (length.bit_length() - 1)
    return k >> 1 if k == length else k


def nmt_root(leaves: Iterable[bytes], visitor: Visitor | None = None) -> bytes:
    """Root of a Namespaced Merkle Tree over namespace-prefixed leaves.

    ``visitor`` is called as ``visitor(hash, leaf)`` for every leaf and
    ``visitor(hash, left, right)`` for every inner node.
    """
    data = [bytes(leaf) for leaf in leaves]
    hashes = []
    previous_nid = None
    for leaf in data:
        digest = hash_leaf(leaf)
        nid = leaf[:NAMESPACE_SIZE]
        if previous_nid is not None and nid < previous_nid:
            raise ValueError("leaves must be ordered by namespace ID")
        previous_nid = nid
        if visitor is not None:
            visitor(digest, leaf)
        hashes.append(digest)
    if not hashes:
        return bytes(2 * NAMESPACE_SIZE) + hashlib.sha256(b"").digest()

    def build(start: int, end: int) -> bytes:
        if end - start == 1:
            return hashes[start]
        k = _split_point(end - start)
        left = build(start, start + k)
        right = build(start + k, end)
        digest = hash_node(left, right)
        if visitor is not None:
            visitor(digest, left, right)
        return digest

    return build(0, len(hashes))


@dataclass(frozen=True)
class Proof:
    """Inclusion proof of the leaf range [start, end) in a Namespaced Merkle Tree."""

    start: int
    end: int
    nodes: tuple[bytes, ...] = ()
    leaf_hash: bytes = b""
    ignore_max_namespace: bool = True

    def verify_inclusion(self, nid: bytes, data: Sequence[bytes], root: bytes) -> bool:
        """Check that ``data`` under namespace ``nid`` is included under ``root``."""
        if self.start < 0 or len(data) != self.end - self.start:
            return False
        try:
            leaf_hashes = deque(hash_leaf(bytes(nid) + bytes(item)) for item in data)
            nodes = deque(self.nodes)

            def compute(start: int, end: int) -> bytes | None:
                if end - start == 1:
                    if self.start <= start < self.end:
                        return leaf_hashes.popleft()
                    return nodes.popleft() if nodes else None
                if end <= self.start or start >= self.end:
                    return nodes.popleft() if nodes else None
                k = _split_point(end - start)
                left = compute(start, start + k)
                right = compute(start + k, end)
                if right is None:
                    return left
                if left is None:
                    raise ValueError("missing left subtree")
                return hash_node(left, right, self.ignore_max_namespace)

            estimate = max(_split_point(self.end) * 2, 1) if self.end > 0 else 1
            root_hash = compute(0, estimate)
            if root_hash is None:
                return False
            for node in nodes:
                root_hash = hash_node(root_hash, node, self.ignore_max_namespace)
        except (ValueError, IndexError):
            return False
        return root_hash == bytes(root)


@dataclass(frozen=True)
class ShareWithProof:
    """A full share (namespace included) with its Merkle proof."""

    share: bytes
    proof: Proof

    def validate(self, root: Cid) -> bool:
        """Validate inclusion of the share under the given root CID."""
        return self.proof.verify_inclusion(
            share_id(self.share),
            [share_data(self.share)],
            namespaced_sha256_from_cid(root),
        )


def new_share_with_proof(index: int, share: bytes, path_to_leaf: Sequence[Cid]) -> ShareWithProof:
    """Build a proof for the leaf at ``index`` from its path of sibling CIDs."""
    nodes = tuple(namespaced_sha256_from_cid(cid) for cid in reversed(path_to_leaf))
    return ShareWithProof(bytes(share), Proof(index, index + 1, nodes))