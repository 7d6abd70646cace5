# showreel/services/ordering.py
"""
Sparse ordering keys for the project collection.

Projects are presented in ``(sort_key ASC, id ASC)`` order. Keys are spaced
``ORDER_GAP`` apart so inserting at the head or between two neighbours
touches one row; only when no integer fits do we renumber everything
(``rebalanced_keys``).
"""
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

ORDER_GAP = 1024
# 给头插预留足够空间，低于此值时整体重排
ORDER_KEY_FLOOR = -(2 ** 62)


def key_for_rank(rank: int) -> int:
    return rank * ORDER_GAP


def head_key(current_min: Optional[int]) -> Optional[int]:
    """
    Key that places a new row before every existing one.
    Returns None when the head would cross ``ORDER_KEY_FLOOR``; the caller
    must rebalance and ask again.
    """
    if current_min is None:
        return 0
    candidate = current_min - ORDER_GAP
    if candidate < ORDER_KEY_FLOOR:
        return None
    return candidate


def key_between(lower: Optional[int], upper: Optional[int]) -> Optional[int]:
    """
    Key strictly between ``lower`` and ``upper`` (either may be open).
    None means the two neighbours are adjacent integers.
    """
    if lower is None and upper is None:
        return 0
    if lower is None:
        return head_key(upper)
    if upper is None:
        return lower + ORDER_GAP
    if upper - lower < 2:
        return None
    return lower + (upper - lower) // 2


def rebalanced_keys(count: int) -> List[int]:
    return [key_for_rank(rank) for rank in range(count)]


def rank_map(ordered_ids: Iterable[int]) -> Dict[int, int]:
    """id -> 0-based rank, for ids already in presentation order."""
    return {project_id: rank for rank, project_id in enumerate(ordered_ids)}


def insertion_neighbours(ordered_keys: Sequence[int], rank: int) -> Tuple[Optional[int], Optional[int]]:
    """
    Keys either side of position ``rank`` in a list that excludes the row
    being moved. ``rank`` past the end clamps to the tail.
    """
    rank = max(0, min(rank, len(ordered_keys)))
    lower = ordered_keys[rank - 1] if rank > 0 else None
    upper = ordered_keys[rank] if rank < len(ordered_keys) else None
    return lower, upper


def merge_placements(current_ids: Sequence[int], targets: Dict[int, int]) -> List[int]:
    """
    New presentation order after pinning ``targets`` (id -> wanted rank).

    Rows not in ``targets`` keep their relative order and fill the free
    positions. Equal targets fall back to id ascending; targets past the end
    land at the tail.
    """
    pinned = sorted(targets.items(), key=lambda item: (item[1], item[0]))
    others = [project_id for project_id in current_ids if project_id not in targets]

    merged: List[int] = []
    p = o = 0
    while p < len(pinned) or o < len(others):
        if p < len(pinned) and (pinned[p][1] <= len(merged) or o == len(others)):
            merged.append(pinned[p][0])
            p += 1
        else:
            merged.append(others[o])
            o += 1
    return merged
