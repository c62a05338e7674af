# diskcraft

This package holds schedulers for an interactive storage simulation. Each object
is stored as three replicas spread over a set of disks. The simulation runs in
timestamps. In each timestamp it deletes objects, writes new ones and serves
reads. Every 1800 timestamps it also asks for garbage collection.

## Installing

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Command line

The `diskcraft-baseline` command plays the baseline strategy. It reads the
interactive protocol on standard input and writes its answers to standard
output:

```
diskcraft-baseline < session.txt
```

First it reads the header (`T M N V G K`) and skips the three per-label demand
tables. Then it answers `OK`. It goes on to handle the timestamps 1 to `T + 105`.
For each timestamp it does the following:

1. It echoes `TIMESTAMP <n>`.
2. It prints how many unfinished read requests the deletes aborted, and then
   their ids.
3. For each new object it prints the object id, and then one line per replica:
   the disk id followed by the units.
4. It prints two head actions for every disk. Then it prints the completed
   requests and the requests it rejected as busy, each list preceded by its
   count.
5. At every collection point it answers `GARBAGE COLLECTION` and reports zero
   swaps for every disk.

## Library

### `diskcraft.baseline`

- `BaselineScheduler(disk_count, volume)`
  - `write(object_id, size)` places each replica on a disk chosen from the
    object id, in the lowest free units of that disk.
  - `delete(object_ids)` frees the units and returns the aborted request ids.
  - `read(requests)` advances one time step. It serves one request at a time
    from the first replica, alternating a jump and a read. Every other new
    request is rejected as busy.
- `run(source, sink)` plays a whole session between two text streams.
- `main(argv=None)` is the entry point of the command.

### `diskcraft.layout`

- `DemandProfile` holds the delete, write and read counts per label and per
  time slice.
- `calculate_demand(profile, volume)` gives a `DemandSummary`. It holds the live
  units per label and period, each label's peak, the totals, the peak total, and
  the first period in which total demand passes 3/8 of the volume.
- `hot_labels(profile, period)` returns the labels whose reads in that period
  are at least a thirtieth of all reads.
- `BlockLayout(disk_count, volume, peak_demand, block_count=48)` splits the front
  of each disk into equal label blocks. The rest of the disk is a spare pool.
  - `preallocate(label_demands)` reserves whole blocks for each label in turn,
    going round robin across the disks.

### `diskcraft.placement`

- `LabelledStore(layout)`
  - `write_object(object_id, size, label, period)` places the primary replica
    in a block of the object's label. It tries a block the label already owns
    first, then a free block. As a last resort it takes over the emptiest block
    that was not claimed in the last five periods. The other two replicas go to
    the spare pools of other disks.
  - `delete_object(object_id)` returns the units to their block or pool.
- `StoredObject` records the object's label, size and replica units.

### `diskcraft.compaction`

- `compact_disk(store, disk_id, budget)` scans each label block from both ends.
  It swaps units so that the objects of the block's label end up at the front,
  and it makes at most `budget` swaps. Consecutive blocks of the same label are
  scanned as one range.
- `collect_garbage(store, budget)` does this for every disk.
- Each exchange is returned as a `Swap(first, second)`.

## What it does not do

The labelled strategy in `layout`, `placement` and `compaction` is offered only
as a library. It has no read scheduling and no command that plays a session with
it. The only strategy that can run a full interactive session is the baseline.