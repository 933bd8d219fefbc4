import pytest

from dalight.nmtnode import NAMESPACE_SIZE, NMT_HASH_SIZE, cid_from_namespaced_sha256
from dalight.share import (
    PARITY_NAMESPACE,
    SHARE_SIZE,
    Proof,
    hash_leaf,
    hash_node,
    new_share_with_proof,
    nmt_root,
    sanity_check_nid,
    share_data,
    share_id,
)


def _leaves(count=4):
    out = []
    for i in range(count):
        nid = bytes(NAMESPACE_SIZE - 1) + bytes([i + 1])
        share = nid + bytes([i + 10]) * (SHARE_SIZE - NAMESPACE_SIZE)
        out.append(nid + share)
    return out


def _tree():
    leaves = _leaves()
    h = [hash_leaf(leaf) for leaf in leaves]
    n01 = hash_node(h[0], h[1])
    n23 = hash_node(h[2], h[3])
    root = hash_node(n01, n23)
    return leaves, h, n01, n23, root


def _path(index):
    _, h, n01, n23, _ = _tree()
    paths = {
        0: [n23, h[1]],
        1: [n23, h[0]],
        2: [h[3], n01],
        3: [h[2], n01],
    }
    return [cid_from_namespaced_sha256(x) for x in paths[index]]


def test_share_id_and_data():
    nid = b"\x01" * NAMESPACE_SIZE
    payload = b"payload"
    share = nid + payload
    assert share_id(share) == nid
    assert share_data(share) == payload
    assert share_id(share) + share_data(share) == share


def test_sanity_check_nid():
    sanity_check_nid(bytes(NAMESPACE_SIZE))
    with pytest.raises(ValueError, match="expected namespace ID of size 8, got 7"):
        sanity_check_nid(bytes(NAMESPACE_SIZE - 1))
    with pytest.raises(ValueError):
        sanity_check_nid(bytes(NAMESPACE_SIZE + 1))


def test_hash_leaf_carries_namespace_range():
    leaf = _leaves(1)[0]
    digest = hash_leaf(leaf)
    assert len(digest) == NMT_HASH_SIZE
    assert digest[:NAMESPACE_SIZE] == leaf[:NAMESPACE_SIZE]
    assert digest[NAMESPACE_SIZE : 2 * NAMESPACE_SIZE] == leaf[:NAMESPACE_SIZE]


def test_hash_node_namespace_range():
    leaves = _leaves(2)
    left, right = hash_leaf(leaves[0]), hash_leaf(leaves[1])
    node = hash_node(left, right)
    assert node[:NAMESPACE_SIZE] == leaves[0][:NAMESPACE_SIZE]
    assert node[NAMESPACE_SIZE : 2 * NAMESPACE_SIZE] == leaves[1][:NAMESPACE_SIZE]


def test_hash_node_ignores_parity_namespace():
    data_leaf = _leaves(1)[0]
    parity_leaf = PARITY_NAMESPACE + b"parity"
    node = hash_node(hash_leaf(data_leaf), hash_leaf(parity_leaf))
    assert node[NAMESPACE_SIZE : 2 * NAMESPACE_SIZE] == data_leaf[:NAMESPACE_SIZE]
    kept = hash_node(hash_leaf(data_leaf), hash_leaf(parity_leaf), ignore_max_namespace=False)
    assert kept[NAMESPACE_SIZE : 2 * NAMESPACE_SIZE] == PARITY_NAMESPACE


def test_hash_node_rejects_bad_length():
    with pytest.raises(ValueError):
        hash_node(b"short", bytes(NMT_HASH_SIZE))


def test_nmt_root_matches_manual_composition():
    leaves, _, _, _, root = _tree()
    assert nmt_root(leaves) == root


def test_nmt_root_visits_every_node():
    leaves = _leaves()
    visited = []
    nmt_root(leaves, lambda digest, *children: visited.append(len(children)))
    assert visited.count(1) == len(leaves)
    assert visited.count(2) == len(leaves) - 1


def test_nmt_root_rejects_unsorted_leaves():
    leaves = _leaves()
    with pytest.raises(ValueError):
        nmt_root(list(reversed(leaves)))


@pytest.mark.parametrize("index", [0, 1, 2, 3])
def test_proof_validates_each_leaf(index):
    leaves, _, _, _, root = _tree()
    proof = new_share_with_proof(index, leaves[index], _path(index))
    assert proof.proof.start == index
    assert proof.proof.end == index + 1
    assert proof.validate(cid_from_namespaced_sha256(root))


def test_proof_rejects_tampered_share():
    leaves, _, _, _, root = _tree()
    tampered = leaves[1][:-1] + b"\x00"
    proof = new_share_with_proof(1, tampered, _path(1))
    assert not proof.validate(cid_from_namespaced_sha256(root))


def test_proof_rejects_wrong_root():
    leaves, _, n01, _, _ = _tree()
    proof = new_share_with_proof(0, leaves[0], _path(0))
    assert not proof.validate(cid_from_namespaced_sha256(n01))


def test_proof_rejects_wrong_data_count():
    leaves, _, _, _, root = _tree()
    proof = Proof(0, 1, ())
    assert not proof.verify_inclusion(leaves[0][:NAMESPACE_SIZE], [], root)