"""Garbage collection that packs each label block's objects to its front.

Each block is scanned from both ends.  A unit at the front that does not hold
the block's label is swapped with a unit at the back that does.  Consecutive
blocks owned by the same label are scanned as one range.  Every disk may make
at most ``budget`` swaps per collection.
"""

from __future__ import annotations

from dataclasses import dataclass

from diskcraft.placement import LabelledStore


@dataclass(frozen=True)
class Swap:
    """Two units of one disk whose contents were exchanged."""

    first: int
    second: int


def _label_at(store: LabelledStore, disk_id: int, unit: int) -> int:
    owner = store.slots[disk_id][unit - 1]
    if owner == 0:
        return 0
    stored = store.objects.get(owner)
    return stored.label if stored is not None else 0


def _block_owner(store: LabelledStore, disk_id: int, block: int) -> int:
    return store.layout.block_owner.get((disk_id, block), 0)


def _exchange(store: LabelledStore, disk_id: int, low: int, high: int) -> None:
    layout = store.layout
    slots = store.slots[disk_id]
    positions = store.positions[disk_id]
    marks = store.read_marks[disk_id]

    first, second = slots[low - 1], slots[high - 1]
    first_part, second_part = positions[low - 1], positions[high - 1]

    store.objects[second].primary[1][second_part - 1] = low
    if first == 0:
        positions[low - 1], positions[high - 1] = second_part, 0
        slots[low - 1], slots[high - 1] = second, 0
        low_block = layout.block_of(low)
        high_block = layout.block_of(high)
        if low_block is not None:
            layout.block_units[disk_id, low_block].remove(low)
        if high_block is not None:
            layout.block_units[disk_id, high_block].add(high)
    else:
        store.objects[first].primary[1][first_part - 1] = high
        positions[low - 1], positions[high - 1] = second_part, first_part
        slots[low - 1], slots[high - 1] = second, first
    marks[low - 1], marks[high - 1] = marks[high - 1], marks[low - 1]


def compact_disk(store: LabelledStore, disk_id: int, budget: int) -> list[Swap]:
    """Pack the label blocks of one disk, making at most ``budget`` swaps."""
    if disk_id not in store.slots:
        raise ValueError(f"unknown disk {disk_id}")
    if budget < 0:
        raise ValueError("swap budget must not be negative")
    layout = store.layout
    size = layout.block_size
    swaps: list[Swap] = []

    for block in range(1, layout.block_count + 1):
        low = size * (block - 1) + 1
        high = size * block
        label = _block_owner(store, disk_id, block)
        while label != 0 and label == _block_owner(store, disk_id, high // size + 1):
            high += size

        while low < high and len(swaps) < budget:
            while low <= high and _label_at(store, disk_id, low) == label:
                low += 1
            while low <= high and _label_at(store, disk_id, high) != label:
                high -= 1
            if low >= high:
                break
            _exchange(store, disk_id, low, high)
            swaps.append(Swap(low, high))
            low += 1
            high -= 1
    return swaps


def collect_garbage(store: LabelledStore, budget: int) -> dict[int, list[Swap]]:
    """Compact every disk in turn, each with its own swap budget."""
    if budget < 0:
        raise ValueError("swap budget must not be negative")
    return {
        disk_id: compact_disk(store, disk_id, budget)
        for disk_id in range(1, store.layout.disk_count + 1)
    }