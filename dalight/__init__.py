"""Namespaced Merkle tree blocks, share proofs, quadrant planning, header verification, key storage and lock files for data-availability nodes."""

__version__ = "0.1.0"