"""Placement of labelled objects onto the block layout.

The first replica of every object goes into a block reserved for the object's
label.  It prefers a block the label already owns, then claims a free block,
and as a last resort takes over the emptiest block that has not been claimed
recently.  The other two replicas go to the shared spare pool at the tail of
other disks.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from sortedcontainers import SortedSet

from diskcraft.layout import BlockLayout

REPLICA_COUNT = 3
STEAL_COOLDOWN = 5


@dataclass
class StoredObject:
    """An object and the units of its replicas.

    ``replicas`` holds (disk id, units) pairs with the primary replica first;
    units are listed in the order of the object's parts.
    """

    object_id: int
    size: int
    label: int
    replicas: list[tuple[int, list[int]]] = field(default_factory=list)
    deleted: bool = False

    @property
    def primary(self) -> tuple[int, list[int]]:
        return self.replicas[0]


class LabelledStore:
    """Disk contents and objects placed according to a block layout.

    ``slots[disk][unit - 1]`` is the id of the object stored in a unit (0 when
    free), ``positions[disk][unit - 1]`` the 1-based part of that object held
    there, and ``read_marks[disk][unit - 1]`` a per-unit read marker that is
    cleared when the primary replica of the unit's object is deleted.
    """

    def __init__(self, layout: BlockLayout) -> None:
        self.layout = layout
        disks = range(1, layout.disk_count + 1)
        self.slots: dict[int, list[int]] = {d: [0] * layout.volume for d in disks}
        self.positions: dict[int, list[int]] = {d: [0] * layout.volume for d in disks}
        self.read_marks: dict[int, list[int]] = {d: [0] * layout.volume for d in disks}
        self.objects: dict[int, StoredObject] = {}

    def owner(self, disk: int, unit: int) -> int:
        """Id of the object stored in a unit, 0 when the unit is free."""
        return self.slots[disk][unit - 1]

    def _take(self, pool: SortedSet, disk: int, object_id: int, size: int) -> list[int]:
        if len(pool) < size:
            raise ValueError(f"not enough free units on disk {disk}")
        slots = self.slots[disk]
        positions = self.positions[disk]
        units: list[int] = []
        while pool and len(units) < size:
            unit = pool.pop(0)
            if slots[unit - 1] == 0:
                slots[unit - 1] = object_id
                units.append(unit)
                positions[unit - 1] = len(units)
        if len(units) < size:
            raise ValueError(f"not enough free units on disk {disk}")
        return units

    def _claim(self, label: int, key: tuple[int, int], period: int) -> None:
        layout = self.layout
        layout.label_blocks[label].add(key)
        layout.block_owner[key] = label
        layout.block_claimed_at[key] = period

    def _disk_order(self, object_id: int) -> list[int]:
        count = self.layout.disk_count
        return [x % count + 1 for x in range(object_id, object_id + count)]

    def _place_primary(
        self, object_id: int, size: int, label: int, period: int
    ) -> tuple[int, list[int]]:
        layout = self.layout
        for key in layout.label_blocks.get(label, ()):
            pool = layout.block_units[key]
            if len(pool) >= size:
                return key[0], self._take(pool, key[0], object_id, size)

        for disk in self._disk_order(object_id):
            free = layout.free_blocks[disk]
            if free:
                key = (disk, free.pop(0))
                self._claim(label, key, period)
                return disk, self._take(layout.block_units[key], disk, object_id, size)

        best: tuple[int, int] | None = None
        best_free = 0
        for disk in range(1, layout.disk_count + 1):
            for block in range(1, layout.block_count + 1):
                key = (disk, block)
                free_units = len(layout.block_units[key])
                if (
                    free_units > best_free
                    and period > STEAL_COOLDOWN + layout.block_claimed_at[key]
                ):
                    best, best_free = key, free_units
        if best is None:
            raise ValueError(f"no block available for label {label}")
        previous = layout.block_owner[best]
        if previous in layout.label_blocks:
            layout.label_blocks[previous].discard(best)
        self._claim(label, best, period)
        return best[0], self._take(layout.block_units[best], best[0], object_id, size)

    def write_object(self, object_id: int, size: int, label: int, period: int) -> StoredObject:
        """Store an object with three replicas and return it."""
        if size < 1:
            raise ValueError("object size must be positive")
        existing = self.objects.get(object_id)
        if existing is not None and not existing.deleted:
            raise ValueError(f"object {object_id} is already stored")

        disk, units = self._place_primary(object_id, size, label, period)
        stored = StoredObject(object_id, size, label, [(disk, units)])
        used = {disk}
        for disk in self._disk_order(object_id):
            if len(stored.replicas) >= REPLICA_COUNT:
                break
            spare = self.layout.spare_units[disk]
            if disk not in used and len(spare) > size:
                stored.replicas.append((disk, self._take(spare, disk, object_id, size)))
                used.add(disk)
        if len(stored.replicas) < REPLICA_COUNT:
            raise ValueError(f"not enough spare space for object {object_id}")
        self.objects[object_id] = stored
        return stored

    def delete_object(self, object_id: int) -> StoredObject:
        """Free every unit of an object and return it, marked as deleted."""
        try:
            stored = self.objects[object_id]
        except KeyError:
            raise KeyError(f"unknown object {object_id}") from None
        if stored.deleted:
            raise ValueError(f"object {object_id} is already deleted")
        layout = self.layout
        for index, (disk, units) in enumerate(stored.replicas):
            for unit in units:
                self.slots[disk][unit - 1] = 0
                if index > 0:
                    layout.spare_units[disk].add(unit)
                else:
                    self.read_marks[disk][unit - 1] = 0
                    block = layout.block_of(unit)
                    if block is not None:
                        layout.block_units[disk, block].add(unit)
                self.positions[disk][unit - 1] = 0
        stored.deleted = True
        return stored