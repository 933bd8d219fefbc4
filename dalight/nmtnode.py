"""IPLD nodes of a Namespaced Merkle Tree and their content identifiers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

# Codec used for leaf and inner nodes of a Namespaced Merkle Tree.
NMT_CODEC = 0x7700
# Multihash code used to hash blocks that contain an NMT node.
SHA256_NAMESPACE8_FLAGGED = 0x7701

NAMESPACE_SIZE = 8
SHA256_SIZE = 32
# Size of a digest created by an NMT in bytes.
NMT_HASH_SIZE = 2 * NAMESPACE_SIZE + SHA256_SIZE

# Domain separators of leaf and inner nodes.
LEAF_PREFIX = 0
NODE_PREFIX = 1

# Size of the multihash header (code + length) in front of a namespaced digest.
CID_PREFIX_SIZE = 4

# Path segments a leaf can be resolved through: none.
_LEAF_CHILDREN: tuple[str, ...] = ()


def _uvarint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


@dataclass(frozen=True)
class Cid:
    """A version 1 content identifier holding a multihash."""

    version: int
    codec: int
    hash: bytes

    def to_bytes(self) -> bytes:
        """Binary form of the identifier: version, codec and multihash."""
        if not self.hash:
            return b""
        return _uvarint(self.version) + _uvarint(self.codec) + self.hash

    def __str__(self) -> str:
        return self.to_bytes().hex()


UNDEF_CID = Cid(0, 0, b"")


@dataclass(frozen=True)
class Link:
    """A link from one node to another."""

    cid: Cid


class NodeNotFoundError(LookupError):
    """Raised when a block is missing from the block source."""


def cid_from_namespaced_sha256(namespaced_hash: bytes) -> Cid:
    """Build a CID from a namespaced hash produced by an NMT."""
    if len(namespaced_hash) != NMT_HASH_SIZE:
        raise ValueError(
            f"invalid namespaced hash length, got: {len(namespaced_hash)}, want: {NMT_HASH_SIZE}"
        )
    multihash = (
        _uvarint(SHA256_NAMESPACE8_FLAGGED)
        + _uvarint(len(namespaced_hash))
        + bytes(namespaced_hash)
    )
    return Cid(1, NMT_CODEC, multihash)


def namespaced_sha256_from_cid(cid: Cid) -> bytes:
    """Derive the namespaced hash from the given CID."""
    return cid.hash[CID_PREFIX_SIZE:]


@dataclass(frozen=True)
class NmtNode:
    """An inner node holding the hashes of its two children."""

    cid: Cid
    left: bytes
    right: bytes

    def raw_data(self) -> bytes:
        return bytes([NODE_PREFIX]) + self.left + self.right

    def links(self) -> list[Link]:
        return [
            Link(cid_from_namespaced_sha256(self.left)),
            Link(cid_from_namespaced_sha256(self.right)),
        ]

    def resolve(self, path: list[str]) -> tuple[Link, list[str]]:
        """Follow the first path element ("0" left, "1" right)."""
        if not path:
            raise ValueError("invalid path for inner node")
        head, rest = path[0], list(path[1:])
        if head == "0":
            return Link(cid_from_namespaced_sha256(self.left)), rest
        if head == "1":
            return Link(cid_from_namespaced_sha256(self.right)), rest
        raise ValueError("invalid path for inner node")

    def tree(self, path: str = "", depth: int = -1) -> list[str]:
        if path != "" or depth != -1:
            raise ValueError("only the full tree listing is supported")
        return ["0", "1"]

    def copy(self) -> NmtNode:
        return NmtNode(self.cid, bytes(self.left), bytes(self.right))

    def __str__(self) -> str:
        return (
            f"\nnode {{\n\thash: {self.cid.hash.hex()},\n"
            f"\tl: {self.left.hex()},\n\tr: {self.right.hex()}\"\n}}"
        )


@dataclass(frozen=True)
class NmtLeafNode:
    """A leaf node holding share data."""

    cid: Cid
    data: bytes

    def raw_data(self) -> bytes:
        return bytes([LEAF_PREFIX]) + self.data

    def links(self) -> list[Link]:
        return [Link(self.cid)]

    def resolve(self, path: list[str]) -> tuple[Link, list[str]]:
        """Leaves have no children, so no path can be resolved through them."""
        segment = path[0] if path else ""
        if segment in _LEAF_CHILDREN:
            return Link(self.cid), list(path[1:])
        raise ValueError("invalid path for leaf node")

    def tree(self, path: str = "", depth: int = -1) -> list[str]:
        """List child paths under ``path``; a leaf has none."""
        return [name for name in _LEAF_CHILDREN if name.startswith(path)]

    def __str__(self) -> str:
        return f"\nleaf {{\n\thash: \t\t{self.cid.hash.hex()},\n\tlen(Data): \t{len(self.data)}\n}}"


def decode_block(cid: Cid, data: bytes) -> NmtNode | NmtLeafNode:
    """Decode the raw bytes of a block into a leaf or inner node."""
    if not data:
        return NmtLeafNode(UNDEF_CID, b"")
    prefix = data[0]
    if prefix == LEAF_PREFIX:
        return NmtLeafNode(cid, bytes(data[1:]))
    if prefix == NODE_PREFIX:
        return NmtNode(cid, bytes(data[1 : 1 + NMT_HASH_SIZE]), bytes(data[1 + NMT_HASH_SIZE :]))
    raise ValueError(
        "expected first byte of block to be either the leaf or inner node prefix: "
        f"({LEAF_PREFIX:02x}, {NODE_PREFIX:02x}), got: {prefix:02x})"
    )


def get_node(blocks: Mapping[Cid, bytes], cid: Cid) -> NmtNode | NmtLeafNode:
    """Fetch the block for ``cid`` from ``blocks`` and decode it."""
    try:
        data = blocks[cid]
    except KeyError:
        raise NodeNotFoundError(f"block not found: {cid}") from None
    return decode_block(cid, data)