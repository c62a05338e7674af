import io

import pytest

from diskcraft.baseline import BaselineScheduler, main, run


def _session(total_time, disks, volume, steps):
    parts = [f"{total_time} 1 {disks} {volume} 1 1\n"]
    slices = (total_time - 1) // 1800 + 1
    parts.append(("1 " * slices + "\n") * 3)
    for t in range(1, total_time + 106):
        delete, write, read = steps.get(t, ("0\n", "0\n", "0\n"))
        parts.append(f"TIMESTAMP {t}\n{delete}{write}{read}")
        if t % 1800 == 0:
            parts.append("GARBAGE COLLECTION\n")
    return "".join(parts)


def test_write_fills_lowest_units_on_distinct_disks():
    scheduler = BaselineScheduler(5, 20)
    replicas = scheduler.write(4, 3)
    assert len(replicas) == 3
    assert len({disk for disk, _ in replicas}) == 3
    assert all(1 <= disk <= 5 for disk, _ in replicas)
    assert all(units == (1, 2, 3) for _, units in replicas)


def test_write_after_delete_reuses_units():
    scheduler = BaselineScheduler(3, 10)
    scheduler.write(1, 3)
    second = scheduler.write(2, 2)
    assert all(units == (4, 5) for _, units in second)
    scheduler.delete([1])
    third = scheduler.write(3, 2)
    assert all(units == (1, 2) for _, units in third)


def test_write_rejects_full_disk_and_bad_size():
    scheduler = BaselineScheduler(3, 4)
    with pytest.raises(ValueError):
        scheduler.write(1, 5)
    with pytest.raises(ValueError):
        scheduler.write(2, 0)


def test_constructor_validates():
    with pytest.raises(ValueError):
        BaselineScheduler(0, 10)
    with pytest.raises(ValueError):
        BaselineScheduler(3, 0)


def test_idle_read():
    scheduler = BaselineScheduler(4, 10)
    actions, completed, busy = scheduler.read([])
    assert actions == [("#", "#")] * 4
    assert completed == []
    assert busy == []


def test_read_walks_first_replica_and_completes():
    scheduler = BaselineScheduler(3, 10)
    replicas = scheduler.write(7, 2)
    disk = replicas[0][0]
    steps = [scheduler.read([(11, 7)]), scheduler.read([]), scheduler.read([]), scheduler.read([])]
    assert steps[0][0][disk - 1] == ("j 1", "#")
    assert steps[1][0][disk - 1] == ("r#", "#")
    assert steps[2][0][disk - 1] == ("j 2", "#")
    assert steps[3][0][disk - 1] == ("r#", "#")
    assert [s[1] for s in steps] == [[], [], [], [11]]
    others = [a for i, a in enumerate(steps[0][0]) if i != disk - 1]
    assert all(a == ("#", "#") for a in others)


def test_batch_serves_last_and_rejects_rest():
    scheduler = BaselineScheduler(3, 10)
    scheduler.write(1, 1)
    scheduler.write(2, 1)
    _, completed, busy = scheduler.read([(5, 1), (6, 2), (7, 1)])
    assert completed == []
    assert busy == [5, 6]
    _, completed, busy = scheduler.read([(8, 2)])
    assert completed == [7]
    assert busy == [8]


def test_delete_aborts_pending_request():
    scheduler = BaselineScheduler(3, 10)
    scheduler.write(9, 2)
    scheduler.read([(21, 9)])
    assert scheduler.delete([9]) == [21]
    results = [scheduler.read([]) for _ in range(3)]
    assert all(completed == [] for _, completed, _ in results)


def test_delete_ignores_finished_requests():
    scheduler = BaselineScheduler(3, 10)
    scheduler.write(3, 1)
    scheduler.read([(1, 3), (2, 3)])
    scheduler.read([])
    assert scheduler.delete([3]) == []


def test_read_unknown_object():
    scheduler = BaselineScheduler(3, 10)
    with pytest.raises(KeyError):
        scheduler.read([(1, 99)])


def test_run_garbage_collection():
    text = _session(1800, 3, 10, {})
    sink = io.StringIO()
    run(io.StringIO(text), sink)
    lines = sink.getvalue().splitlines()
    index = lines.index("GARBAGE COLLECTION")
    assert lines[index + 1:index + 4] == ["0", "0", "0"]
    assert lines.count("GARBAGE COLLECTION") == 1


def test_run_truncated_input():
    text = _session(1, 3, 10, {})
    with pytest.raises(EOFError):
        run(io.StringIO(text[: len(text) // 2]), io.StringIO())


def test_main_uses_standard_streams(monkeypatch):
    text = _session(1, 3, 10, {})
    monkeypatch.setattr("sys.stdin", io.StringIO(text))
    out = io.StringIO()
    monkeypatch.setattr("sys.stdout", out)
    assert main([]) == 0
    assert out.getvalue().splitlines()[0] == "OK"