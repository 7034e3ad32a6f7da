from __future__ import annotations

import pytest

from aipart.partition import build_clusters


def _interleave(order: list[int], clusters: list[list[int]], unsupported: list[int]) -> list[int]:
    members = [idx for cluster in clusters for idx in cluster]
    rebuilt: list[int] = []
    for idx in order:
        rebuilt.append(idx if idx in unsupported else members.pop(0))
    assert not members
    return rebuilt


def test_no_unsupported_nodes_gives_single_cluster() -> None:
    assert build_clusters([0, 1, 2, 3, 4], []) == [[0, 1, 2, 3, 4]]


def test_all_unsupported_gives_no_clusters() -> None:
    assert build_clusters([0, 1, 2], [0, 1, 2]) == []


def test_empty_graph() -> None:
    assert build_clusters([], []) == []


def test_cuts_around_unsupported_nodes() -> None:
    assert build_clusters([0, 1, 2], [1]) == [[0], [2]]


def test_leading_trailing_and_consecutive_unsupported() -> None:
    order = [0, 1, 2, 3, 4, 5, 6, 7]
    unsupported = [0, 3, 4, 7]
    clusters = build_clusters(order, unsupported)
    assert clusters == [[1, 2], [5, 6]]
    assert _interleave(order, clusters, unsupported) == order


def test_follows_topological_order_not_index_order() -> None:
    order = [2, 0, 3, 1]
    clusters = build_clusters(order, [3])
    assert clusters == [[2, 0], [1]]
    assert _interleave(order, clusters, [3]) == order


def test_unknown_unsupported_node_raises() -> None:
    with pytest.raises(ValueError):
        build_clusters([0, 1], [5])


def test_out_of_order_unsupported_nodes_raise() -> None:
    with pytest.raises(ValueError):
        build_clusters([0, 1, 2], [2, 0])
