# tests/test_ordering.py
from showreel.services.ordering import (
    ORDER_GAP,
    ORDER_KEY_FLOOR,
    head_key,
    insertion_neighbours,
    key_between,
    merge_placements,
    rank_map,
    rebalanced_keys,
)


def test_head_key_empty_collection_starts_at_zero():
    assert head_key(None) == 0


def test_head_key_goes_one_gap_below_current_head():
    assert head_key(0) == -ORDER_GAP
    assert head_key(-ORDER_GAP) == -2 * ORDER_GAP


def test_head_key_signals_rebalance_near_floor():
    assert head_key(ORDER_KEY_FLOOR + 1) is None


def test_key_between_midpoint_and_open_ends():
    assert key_between(0, ORDER_GAP) == ORDER_GAP // 2
    assert key_between(None, 0) == -ORDER_GAP
    assert key_between(ORDER_GAP, None) == 2 * ORDER_GAP
    assert key_between(None, None) == 0


def test_key_between_adjacent_keys_needs_rebalance():
    assert key_between(5, 6) is None
    assert key_between(7, 7) is None


def test_insertion_neighbours_clamps_rank():
    keys = [0, 1024, 2048]
    assert insertion_neighbours(keys, 0) == (None, 0)
    assert insertion_neighbours(keys, 1) == (0, 1024)
    assert insertion_neighbours(keys, 3) == (2048, None)
    assert insertion_neighbours(keys, 99) == (2048, None)
    assert insertion_neighbours([], 0) == (None, None)


def test_rebalanced_keys_and_rank_map():
    assert rebalanced_keys(3) == [0, ORDER_GAP, 2 * ORDER_GAP]
    assert rank_map([7, 3, 9]) == {7: 0, 3: 1, 9: 2}


def test_merge_placements_full_and_partial_batches():
    current = [30, 20, 10]
    assert merge_placements(current, {10: 0, 20: 1, 30: 2}) == [10, 20, 30]
    # 只移动一个：其余保持相对顺序
    assert merge_placements(current, {10: 0}) == [10, 30, 20]
    assert merge_placements(current, {30: 1}) == [20, 30, 10]


def test_merge_placements_ties_and_overflow():
    assert merge_placements([3, 2, 1], {2: 0, 1: 0}) == [1, 2, 3]
    assert merge_placements([3, 2, 1], {3: 99}) == [2, 1, 3]
    assert merge_placements([], {}) == []
