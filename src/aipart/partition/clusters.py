from __future__ import annotations

from collections.abc import Sequence


def build_clusters(
    order: Sequence[int], unsupported: Sequence[int]
) -> list[list[int]]:
    """
    Cut the topological order at each unsupported node.

    Each span between two cuts becomes a cluster when non-empty, so runs of
    unsupported nodes contribute nothing. `unsupported` must be a subsequence
    of `order`.
    """
    position = {idx: pos for pos, idx in enumerate(order)}
    clusters: list[list[int]] = []
    start = 0
    for idx in unsupported:
        pos = position.get(idx)
        if pos is None:
            raise ValueError(f"Unsupported node {idx} is not in the topological order")
        if pos < start:
            raise ValueError(
                f"Unsupported node {idx} is out of topological order"
            )
        if pos > start:
            clusters.append(list(order[start:pos]))
        start = pos + 1

    # tail
    if start < len(order):
        clusters.append(list(order[start:]))
    return clusters
