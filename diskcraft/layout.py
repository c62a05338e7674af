"""Demand forecasting and the block layout of the labelled disks.

The forecast turns the per-slice delete/write/read counts of every label into
the number of units each label keeps alive over time.  The layout divides the
front of every disk into equal blocks reserved for labels, and leaves the tail
of every disk as a shared pool of spare units.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Iterable, Sequence

from sortedcontainers import SortedSet

SLICE_LENGTH = 1800
DEFAULT_BLOCK_COUNT = 48
RESERVED_UNITS = 20
PREALLOCATION_RATIO = (3, 8)
HOT_READ_DIVISOR = 30
PEAK_WINDOW = 47


def _cdiv(numerator: int, denominator: int) -> int:
    """Integer division truncating towards zero."""
    quotient = abs(numerator) // abs(denominator)
    return quotient if (numerator >= 0) == (denominator > 0) else -quotient


@dataclass(frozen=True)
class DemandProfile:
    """Per-label, per-slice counts of deleted, written and read units.

    Each table holds one row per label (label 1 first) and one column per
    time slice (slice 1 first).
    """

    total_time: int
    delete: tuple[tuple[int, ...], ...]
    write: tuple[tuple[int, ...], ...]
    read: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        if self.total_time < 1:
            raise ValueError("total time must be positive")
        tables = {}
        for name in ("delete", "write", "read"):
            rows = tuple(tuple(int(v) for v in row) for row in getattr(self, name))
            object.__setattr__(self, name, rows)
            tables[name] = rows
        labels = {len(rows) for rows in tables.values()}
        if len(labels) != 1:
            raise ValueError("all tables must have the same number of labels")
        slices = self.slice_count
        for name, rows in tables.items():
            for label, row in enumerate(rows, 1):
                if len(row) != slices:
                    raise ValueError(
                        f"{name} row of label {label} has {len(row)} slices, expected {slices}"
                    )

    @property
    def label_count(self) -> int:
        return len(self.write)

    @property
    def slice_count(self) -> int:
        return (self.total_time - 1) // SLICE_LENGTH + 1

    @property
    def labels(self) -> range:
        return range(1, self.label_count + 1)


def _at(table: tuple[tuple[int, ...], ...], label: int, period: int) -> int:
    if not 1 <= label <= len(table):
        return 0
    row = table[label - 1]
    if not 1 <= period <= len(row):
        return 0
    return row[period - 1]


@dataclass(frozen=True)
class DemandSummary:
    """Forecast of live units per label and over all labels.

    ``live[label - 1][period]`` is the number of units of a label alive in a
    period; period 0 is the empty start.  ``preallocation_period`` is the first
    period whose total demand outgrows the disks' share, or 0 if none does.
    """

    live: tuple[tuple[int, ...], ...]
    peaks: tuple[int, ...]
    totals: tuple[int, ...]
    peak_total: int
    preallocation_period: int

    @property
    def preallocation_demands(self) -> tuple[int, ...]:
        """Live units of every label in the preallocation period."""
        return tuple(row[self.preallocation_period] for row in self.live)


def calculate_demand(profile: DemandProfile, volume: int) -> DemandSummary:
    """Forecast how many units every label keeps alive per time slice."""
    periods = profile.total_time // SLICE_LENGTH
    live: list[tuple[int, ...]] = []
    peaks: list[int] = []
    for label in profile.labels:
        row = [0]
        for period in range(1, periods):
            row.append(
                _at(profile.write, label, period)
                + row[-1]
                - _at(profile.delete, label, period - 1)
            )
        live.append(tuple(row))
        peaks.append(max([0, *row[1:]]))

    totals = [0] + [sum(row[period] for row in live) for period in range(1, periods)]
    numerator, denominator = PREALLOCATION_RATIO
    preallocation_period = next(
        (
            period
            for period in range(1, periods)
            if totals[period] * numerator > volume * denominator
        ),
        0,
    )
    window = totals[1 : PEAK_WINDOW + 1]
    window += [0] * (PEAK_WINDOW - len(window))
    return DemandSummary(
        live=tuple(live),
        peaks=tuple(peaks),
        totals=tuple(totals),
        peak_total=max(window),
        preallocation_period=preallocation_period,
    )


def hot_labels(profile: DemandProfile, period: int) -> tuple[int, ...]:
    """Labels whose reads in a period reach a thirtieth of all reads then."""
    total = sum(_at(profile.read, label, period) for label in profile.labels)
    threshold = total // HOT_READ_DIVISOR
    return tuple(
        label for label in profile.labels if _at(profile.read, label, period) >= threshold
    )


@dataclass
class BlockLayout:
    """Label blocks at the front of every disk and a spare pool behind them."""

    disk_count: int
    volume: int
    peak_demand: int
    block_count: int = DEFAULT_BLOCK_COUNT
    block_size: int = field(init=False)
    data_start: int = field(init=False)
    free_blocks: dict[int, SortedSet] = field(init=False)
    block_units: dict[tuple[int, int], SortedSet] = field(init=False)
    spare_units: dict[int, SortedSet] = field(init=False)
    block_owner: dict[tuple[int, int], int] = field(init=False)
    block_claimed_at: dict[tuple[int, int], int] = field(init=False)
    label_blocks: defaultdict[int, SortedSet] = field(init=False)

    def __post_init__(self) -> None:
        if self.disk_count < 1:
            raise ValueError("at least one disk is required")
        if self.block_count < 1:
            raise ValueError("at least one block per disk is required")
        divisible = (
            self.volume - _cdiv(self.peak_demand * 2, self.disk_count) - RESERVED_UNITS
        )
        self.block_size = _cdiv(divisible, self.block_count)
        if self.block_size < 1:
            raise ValueError("disk volume leaves no room for label blocks")
        self.data_start = self.block_size * self.block_count + 1

        disks = range(1, self.disk_count + 1)
        blocks = range(1, self.block_count + 1)
        self.free_blocks = {disk: SortedSet(blocks) for disk in disks}
        self.block_units = {
            (disk, block): SortedSet(
                range((block - 1) * self.block_size + 1, block * self.block_size + 1)
            )
            for disk in disks
            for block in blocks
        }
        self.spare_units = {
            disk: SortedSet(range(self.data_start, self.volume + 1)) for disk in disks
        }
        self.block_owner = {key: 0 for key in self.block_units}
        self.block_claimed_at = {key: 0 for key in self.block_units}
        self.label_blocks = defaultdict(SortedSet)

    def block_of(self, unit: int) -> int | None:
        """Block holding a unit, or None for units of the spare pool."""
        if 1 <= unit < self.data_start:
            return (unit - 1) // self.block_size + 1
        return None

    def preallocate(self, label_demands: Iterable[int]) -> dict[int, list[tuple[int, int]]]:
        """Reserve whole blocks for labels 1, 2, ... in turn, across the disks.

        Blocks are handed out round robin: disk by disk within one block row,
        then on to the next row.  Returns the blocks given to each label.
        """
        granted: dict[int, list[tuple[int, int]]] = {}
        disk, block = 1, 1
        for label, demand in enumerate(label_demands, 1):
            granted[label] = []
            for _ in range(max(0, _cdiv(demand, self.block_size))):
                free = self.free_blocks.get(disk)
                if free is None or block not in free:
                    raise ValueError(f"block {block} of disk {disk} is not free")
                free.remove(block)
                self.label_blocks[label].add((disk, block))
                self.block_owner[disk, block] = label
                granted[label].append((disk, block))
                disk += 1
                if disk > self.disk_count:
                    block += 1
                    disk = 1
        return granted


def _rows(values: Sequence[Sequence[int]]) -> tuple[tuple[int, ...], ...]:
    return tuple(tuple(row) for row in values)