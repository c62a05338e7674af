"""Baseline storage scheduler: fixed replica placement and a single read head.

Objects are written as three replicas onto disks chosen by their id, filling the
lowest free units.  Reads are served one request at a time by walking the first
replica unit by unit (a jump followed by a read); every other request arriving
while the head is busy is reported as rejected straight away.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from itertools import islice
from typing import Iterable, Iterator, TextIO

REPLICA_COUNT = 3
SLICE_LENGTH = 1800
EXTRA_TIME = 105
IDLE = ("#", "#")


@dataclass
class _Request:
    object_id: int
    done: bool = False


@dataclass
class _Object:
    size: int
    replicas: list[tuple[int, tuple[int, ...]]]
    requests: list[int] = field(default_factory=list)
    deleted: bool = False


class BaselineScheduler:
    """State of all disks, objects and read requests for the baseline strategy."""

    def __init__(self, disk_count: int, volume: int) -> None:
        if disk_count < 1:
            raise ValueError("at least one disk is required")
        if volume < 1:
            raise ValueError("disk volume must be positive")
        self.disk_count = disk_count
        self.volume = volume
        self._slots: dict[int, list[int]] = {
            disk: [0] * volume for disk in range(1, disk_count + 1)
        }
        self._objects: dict[int, _Object] = {}
        self._requests: dict[int, _Request] = {}
        self._current: int | None = None
        self._phase = 0

    def _pending(self, object_id: int) -> list[int]:
        obj = self._objects.get(object_id)
        if obj is None:
            return []
        return [rid for rid in reversed(obj.requests) if not self._requests[rid].done]

    def delete(self, object_ids: Iterable[int]) -> list[int]:
        """Delete objects and return the ids of their unfinished read requests.

        For each object the unfinished requests are listed newest first.
        """
        ids = list(object_ids)
        aborted = [rid for object_id in ids for rid in self._pending(object_id)]
        for object_id in ids:
            obj = self._objects.get(object_id)
            if obj is None:
                continue
            for disk, units in obj.replicas:
                slots = self._slots[disk]
                for unit in units:
                    slots[unit - 1] = 0
            obj.deleted = True
        return aborted

    def write(self, object_id: int, size: int) -> list[tuple[int, tuple[int, ...]]]:
        """Store an object and return its replicas as (disk id, units) pairs."""
        if size < 1:
            raise ValueError("object size must be positive")
        replicas: list[tuple[int, tuple[int, ...]]] = []
        for j in range(1, REPLICA_COUNT + 1):
            disk = (object_id + j) % self.disk_count + 1
            slots = self._slots[disk]
            free = tuple(
                islice((unit for unit, owner in enumerate(slots, 1) if owner == 0), size)
            )
            if len(free) < size:
                raise ValueError(f"not enough free units on disk {disk}")
            for unit in free:
                slots[unit - 1] = object_id
            replicas.append((disk, free))
        self._objects[object_id] = _Object(size=size, replicas=replicas)
        return list(replicas)

    def read(
        self, requests: Iterable[tuple[int, int]]
    ) -> tuple[list[tuple[str, str]], list[int], list[int]]:
        """Register new (request id, object id) pairs and advance one time step.

        Returns the two head actions of every disk, the requests completed in
        this step and the requests rejected as busy.
        """
        batch = list(requests)
        for request_id, object_id in batch:
            obj = self._objects.get(object_id)
            if obj is None:
                raise KeyError(f"unknown object {object_id}")
            self._requests[request_id] = _Request(object_id)
            obj.requests.append(request_id)

        if self._current is None and batch:
            self._current = batch[-1][0]

        actions = [IDLE] * self.disk_count
        completed: list[int] = []
        if self._current is not None:
            self._phase += 1
            request = self._requests[self._current]
            obj = self._objects[request.object_id]
            disk, units = obj.replicas[0]
            if self._phase % 2 == 1:
                actions[disk - 1] = (f"j {units[self._phase // 2]}", "#")
            else:
                actions[disk - 1] = ("r#", "#")
            if self._phase == obj.size * 2:
                if not obj.deleted:
                    completed.append(self._current)
                    request.done = True
                self._current = None
                self._phase = 0

        busy = [rid for rid, _ in batch if rid != self._current]
        for rid in busy:
            self._requests[rid].done = True
        return actions, completed, busy


def _tokens(source: TextIO) -> Iterator[str]:
    for line in iter(source.readline, ""):
        yield from line.split()


class _Reader:
    def __init__(self, source: TextIO) -> None:
        self._tokens = _tokens(source)

    def word(self) -> str:
        try:
            return next(self._tokens)
        except StopIteration:
            raise EOFError("unexpected end of input") from None

    def number(self) -> int:
        return int(self.word())


def run(source: TextIO, sink: TextIO) -> None:
    """Play the whole interactive session read from source, answering to sink."""
    reader = _Reader(source)
    total_time, labels, disks, volume, _, _ = (reader.number() for _ in range(6))
    slices = (total_time - 1) // SLICE_LENGTH + 1
    for _ in range(3 * labels * slices):
        reader.number()
    sink.write("OK\n")
    sink.flush()

    scheduler = BaselineScheduler(disks, volume)
    for t in range(1, total_time + EXTRA_TIME + 1):
        reader.word()
        sink.write(f"TIMESTAMP {reader.number()}\n")
        sink.flush()

        to_delete = [reader.number() for _ in range(reader.number())]
        aborted = scheduler.delete(to_delete)
        sink.write("".join(f"{rid}\n" for rid in [len(aborted), *aborted]))
        sink.flush()

        for _ in range(reader.number()):
            object_id, size, _label = reader.number(), reader.number(), reader.number()
            replicas = scheduler.write(object_id, size)
            sink.write(f"{object_id}\n")
            for disk, units in replicas:
                sink.write(" ".join(map(str, (disk, *units))) + "\n")
        sink.flush()

        count = reader.number()
        batch = [(reader.number(), reader.number()) for _ in range(count)]
        actions, completed, busy = scheduler.read(batch)
        for first, second in actions:
            sink.write(f"{first}\n{second}\n")
        for ids in (completed, busy):
            sink.write("".join(f"{rid}\n" for rid in [len(ids), *ids]))
        sink.flush()

        if t % SLICE_LENGTH == 0:
            reader.word()
            reader.word()
            sink.write("GARBAGE COLLECTION\n")
            sink.write("0\n" * disks)
            sink.flush()


def main(argv: list[str] | None = None) -> int:
    """Run the baseline scheduler on standard input and output."""
    parser = argparse.ArgumentParser(
        prog="diskcraft-baseline",
        description="Answer an interactive storage session with the baseline strategy.",
    )
    parser.parse_args(argv)
    run(sys.stdin, sys.stdout)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())