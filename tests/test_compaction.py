import pytest

from diskcraft.compaction import Swap, collect_garbage, compact_disk
from diskcraft.layout import BlockLayout
from diskcraft.placement import LabelledStore


def _fragmented_store():
    layout = BlockLayout(disk_count=3, volume=60, peak_demand=0, block_count=4)
    store = LabelledStore(layout)
    store.write_object(1, 3, 1, 1)
    store.write_object(3, 3, 1, 1)
    store.delete_object(1)
    return store


def _assert_consistent(store):
    for stored in store.objects.values():
        if stored.deleted:
            continue
        for disk, units in stored.replicas:
            for part, unit in enumerate(units, 1):
                assert store.slots[disk][unit - 1] == stored.object_id
                assert store.positions[disk][unit - 1] == part


def _assert_pools_disjoint(store):
    layout = store.layout
    for (disk, block), pool in layout.block_units.items():
        for unit in pool:
            assert store.slots[disk][unit - 1] == 0
            assert layout.block_of(unit) == block


def test_compaction_moves_object_to_block_front():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    swaps = compact_disk(store, disk, 100)
    assert swaps == [Swap(1, 6), Swap(2, 5), Swap(3, 4)]
    assert sorted(store.objects[3].primary[1]) == [1, 2, 3]
    _assert_consistent(store)


def test_compaction_returns_freed_units_to_block_pool():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    compact_disk(store, disk, 100)
    pool = store.layout.block_units[disk, 1]
    assert all(unit not in pool for unit in store.objects[3].primary[1])
    assert len(pool) == store.layout.block_size - store.objects[3].size
    _assert_pools_disjoint(store)


def test_budget_limits_swaps():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    swaps = compact_disk(store, disk, 1)
    assert len(swaps) == 1
    _assert_consistent(store)
    _assert_pools_disjoint(store)


def test_zero_budget_changes_nothing():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    before = list(store.objects[3].primary[1])
    assert compact_disk(store, disk, 0) == []
    assert store.objects[3].primary[1] == before


def test_second_pass_finds_nothing_to_do():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    compact_disk(store, disk, 100)
    assert compact_disk(store, disk, 100) == []


def test_read_marks_follow_data():
    store = _fragmented_store()
    disk, units = store.objects[3].primary
    last = max(units)
    store.read_marks[disk][last - 1] = 7
    swaps = compact_disk(store, disk, 100)
    moved_to = next(s.first for s in swaps if s.second == last)
    assert store.read_marks[disk][moved_to - 1] == 7
    assert store.read_marks[disk][last - 1] == 0


def test_collect_garbage_covers_every_disk():
    store = _fragmented_store()
    disk = store.objects[3].primary[0]
    result = collect_garbage(store, 100)
    assert sorted(result) == [1, 2, 3]
    assert len(result[disk]) == store.objects[3].size
    assert all(result[d] == [] for d in result if d != disk)
    _assert_consistent(store)


def test_compact_rejects_unknown_disk():
    store = _fragmented_store()
    with pytest.raises(ValueError):
        compact_disk(store, 9, 10)


def test_negative_budget_rejected():
    store = _fragmented_store()
    with pytest.raises(ValueError):
        compact_disk(store, 1, -1)
    with pytest.raises(ValueError):
        collect_garbage(store, -1)