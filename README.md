# dalight

Building blocks for a light data-availability node: Namespaced Merkle Tree (NMT) blocks and their content identifiers, share inclusion proofs, tree walks over a block store, quadrant planning for square retrieval, header verification, private-key storage and directory lock files.

The package needs only the standard library. The lock file module uses `fcntl`, so it runs on POSIX systems only.

## Modules

### `dalight.nmtnode`

- `Cid` is a version 1 content identifier. `Cid.to_bytes()` gives its binary form.
- `cid_from_namespaced_sha256(digest)` builds a `Cid` from a 48-byte namespaced digest and raises `ValueError` for any other length. `namespaced_sha256_from_cid(cid)` turns it back into the digest.
- `NmtNode` is an inner node and `NmtLeafNode` is a leaf. Both have `raw_data()`, `links()`, `resolve(path)` and `tree(path, depth)`. `NmtNode` also has `copy()`.
- `decode_block(cid, data)` decodes raw block bytes. It raises `ValueError` when the first byte is neither the leaf prefix nor the inner-node prefix.
- `get_node(blocks, cid)` looks the block up in a mapping of `Cid` to bytes and decodes it. It raises `NodeNotFoundError` when the block is absent.

### `dalight.share`

- `share_id(share)` and `share_data(share)` split a share into its 8-byte namespace ID and its data.
- `sanity_check_nid(nid)` raises `ValueError` unless the namespace ID is 8 bytes long.
- `hash_leaf`, `hash_node` and `nmt_root` compute namespaced hashes. `nmt_root(leaves, visitor)` takes leaves ordered by namespace and calls `visitor` for every leaf and inner node it hashes.
- `Proof.verify_inclusion(nid, data, root)` checks a range inclusion proof.
- `new_share_with_proof(index, share, path_to_leaf)` builds a `ShareWithProof` from the sibling CIDs that `dalight.tree.get_proof` returns. `ShareWithProof.validate(root_cid)` checks it against a root.

### `dalight.adder`

`NmtNodeAdder(store, max_batch_nodes=None)` turns tree visits into blocks.

- `visit(hash, *children)` records one node. Pass one child for a leaf and two for an inner node; any other count raises `ValueError`. A leaf seen again is skipped.
- `commit()` writes the pending blocks into `store`. If an earlier batch write failed, it raises that error instead.

The adder is not thread-safe.

### `dalight.tree`

Walks a tree kept in a block mapping.

- `get_leaf(blocks, root, leaf, total)` fetches one leaf node and `get_share(blocks, root, leaf_index, total_leafs)` fetches the share stored in it.
- `get_proof(blocks, root, leaf, total)` collects sibling CIDs for a proof. `get_proofs_for_shares(blocks, root, shares)` builds a `ShareWithProof` for every entry that is not `None`.
- `get_leaves_by_namespace(blocks, root, nid)` and `get_shares_by_namespace(blocks, root, nid)` return everything under one namespace. They return an empty list when the namespace is outside the root's range or absent.
- `get_shares(blocks, root, shares, put)` fetches every reachable share on a thread pool and calls `put(position, share)` for each one. Missing or malformed blocks are skipped.

### `dalight.quadrant`

- `new_quadrants(row_roots, column_roots, rng=None)` builds the eight quadrants of an extended square, four per axis, and shuffles them.
- `Quadrant.index(root_idx, cell_idx)` maps a share's position within a quadrant to its index in the square flattened row by row.
- `batch_size(square_size)` gives the number of distinct blocks that the row and column trees of a square produce.

### `dalight.verify`

- `verify_adjacent(trusted, untrusted, now=None)` checks that:
  - the untrusted header directly follows the trusted one, raising `NonAdjacentError` otherwise;
  - both headers are on the same chain;
  - the untrusted time is after the trusted time;
  - the untrusted time is no more than 10 seconds ahead of now;
  - the untrusted validators hash matches the trusted next validators hash.

  A failure of any check after the first raises `VerifyError`.
- `is_expired(header, now=None)` reports whether the header is older than the 168-hour trusting period.

Headers are any objects with `chain_id`, `height`, `time`, `validators_hash` and `next_validators_hash`.

### `dalight.keystore`

- `MapKeystore` keeps keys in memory. `FSKeystore(path)` keeps one JSON file per key, with mode `0600`, in a directory that it creates if missing.
- Both have `put`, `get`, `delete`, `list` and `path`.
  - Putting a name that already exists raises `KeystoreError`.
  - Reading or deleting a missing name raises `KeyNotFoundError`.
  - `FSKeystore.get` refuses key files whose permissions are open to group or others.
- On disk, file names are `key_name_to_base32(name)`. `key_name_from_base32` reverses this.

### `dalight.fslock`

- `Locker(path)` takes an exclusive, non-blocking lock on a file. It can be used as a context manager.
- `lock(path)` creates a `Locker` and locks it at once.
- `LockedError` is raised when another holder already has the lock.
- `unlock()` releases the lock and removes the file.

### `dalight.fsutil`

`exists(path)` reports whether anything is present at a path.

## Examples

Build a tree into a block store, read a share back and prove it:

```python
from dalight.adder import NmtNodeAdder
from dalight.nmtnode import cid_from_namespaced_sha256
from dalight.share import new_share_with_proof, nmt_root
from dalight.tree import get_proof, get_share

leaves = [bytes([i + 1]) * 8 + b"share %d" % i for i in range(4)]
store = {}
adder = NmtNodeAdder(store)
root = cid_from_namespaced_sha256(nmt_root(leaves, visitor=adder.visit))
adder.commit()

print(get_share(store, root, 2, 4))          # b'share 2'
path = get_proof(store, root, 2, 4)
print(new_share_with_proof(2, leaves[2], path).validate(root))
```

Store a key on disk:

```python
import tempfile
from pathlib import Path

from dalight.keystore import FSKeystore, PrivKey

store = FSKeystore(Path(tempfile.mkdtemp()) / "keys")
store.put("my-key", PrivKey(body=b"placeholder"))
print(store.get("my-key").body)
print(store.list())
```

Guard a directory with a lock file:

```python
from dalight.fslock import Locker, LockedError

try:
    with Locker("/tmp/.lock"):
        ...  # work on the directory
except LockedError:
    print("the directory is in use")
```

## What the package does not do

- It has no command and does not run a node.
- It does no networking. Blocks are read from and written to an in-process mapping.
- It does not erasure-code, extend or reconstruct data squares. `dalight.quadrant` only plans which quadrants to fetch and where their shares go.
- It does not check validator signatures or commits of headers.
- It does not configure logging.

## Tests

Install the test extra with `pip install -e .[test]`, then run `pytest`.