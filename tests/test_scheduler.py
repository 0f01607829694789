import pytest

from ingestion.scheduler import BatchScheduler


def test_batches_and_pauses_between_them():
    pauses = []
    sched = BatchScheduler(batch_size=2, delay=0.25, pause=pauses.append)
    seen = []

    n = sched.run(list("abcde"), lambda b: seen.append((b.index, b.start, b.items)))

    assert n == 3
    assert seen == [(0, 0, ["a", "b"]), (1, 2, ["c", "d"]), (2, 4, ["e"])]
    assert pauses == [0.25, 0.25]


def test_batches_are_lazy():
    pauses = []
    sched = BatchScheduler(batch_size=1, delay=0.0, pause=pauses.append)
    gen = sched.batches([1, 2, 3])
    assert next(gen).items == [1]
    assert pauses == []
    assert next(gen).items == [2]
    assert pauses == [0.0]


def test_empty_input_runs_nothing():
    sched = BatchScheduler(batch_size=3, delay=0.0, pause=lambda _: None)
    assert sched.run([], lambda b: pytest.fail("no batch expected")) == 0


def test_invalid_batch_size():
    with pytest.raises(ValueError):
        BatchScheduler(batch_size=0)
