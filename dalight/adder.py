"""Collects the nodes of a Namespaced Merkle Tree into a block store."""

from __future__ import annotations

from collections.abc import MutableMapping

from .nmtnode import Cid, NmtLeafNode, NmtNode, cid_from_namespaced_sha256


class NmtNodeAdder:
    """Turns NMT visits into IPLD blocks and writes them to ``store`` in batches.

    Not thread-safe.
    """

    def __init__(self, store: MutableMapping[Cid, bytes], max_batch_nodes: int | None = None) -> None:
        self._store = store
        self._max_batch_nodes = max_batch_nodes
        self._pending: dict[Cid, bytes] = {}
        self._leaves: set[Cid] = set()
        self._error: BaseException | None = None

    def visit(self, hash: bytes, *args: bytes) -> None:
        """Record a tree node: one child for a leaf, two for an inner node."""
        if self._error is not None:
            return  # stop adding once a write has failed
        cid = cid_from_namespaced_sha256(hash)
        if len(args) == 1:
            if cid in self._leaves:
                return
            self._leaves.add(cid)
            node: NmtNode | NmtLeafNode = NmtLeafNode(cid, bytes(args[0]))
        elif len(args) == 2:
            node = NmtNode(cid, bytes(args[0]), bytes(args[1]))
        else:
            raise ValueError("expected a binary tree")
        self._pending[cid] = node.raw_data()
        if self._max_batch_nodes and len(self._pending) >= self._max_batch_nodes:
            try:
                self._flush()
            except Exception as exc:  # the store's failure is reported on commit
                self._error = exc

    def commit(self) -> None:
        """Raise any error seen during visits, otherwise write pending blocks."""
        if self._error is not None:
            raise self._error
        self._flush()

    def _flush(self) -> None:
        pending, self._pending = self._pending, {}
        for cid, raw in pending.items():
            self._store[cid] = raw