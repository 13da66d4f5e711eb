import pytest

from partition_memory import allocate, deallocate, fragmentation, free_space_stats, initialize, needs_compaction
from partition_memory.segment import Segment
from partition_memory.snapshot import Snapshot


def test_single_free_block_is_not_fragmented():
    assert fragmentation(initialize(1000)) == 0.0


def test_no_free_space_is_not_fragmented():
    full = allocate(initialize(1000), "A", 1000).snapshot
    assert full.free == ()
    assert fragmentation(full) == 0.0


def test_ratio_uses_largest_block():
    snapshot = Snapshot.build(
        1000,
        [Segment("f1", 0, 100), Segment("f2", 500, 300)],
        [Segment("a1", 100, 400, "A"), Segment("a2", 800, 200, "B")],
    )
    assert fragmentation(snapshot) == pytest.approx(1 - 300 / 400)
    assert not needs_compaction(snapshot)
    assert needs_compaction(snapshot, threshold=0.2)


def test_stats_summary():
    snapshot = initialize(1000)
    for name in "ABCD":
        snapshot = allocate(snapshot, name, 100).snapshot
    snapshot = deallocate(snapshot, "B").snapshot
    stats = free_space_stats(snapshot)
    assert stats["used"] == 300
    assert stats["free"] == 700
    assert stats["free_blocks"] == 2
    assert stats["jobs"] == 3
    assert stats["largest_free_block"] == 600
    assert stats["utilization"] == pytest.approx(0.3)
    assert stats["fragmentation"] == pytest.approx(1 - 600 / 700)
