import unittest

from partition_memory import (
    ErrorKind,
    PartitionError,
    Policy,
    SequentialIds,
    allocate,
    deallocate,
    initialize,
    partition_errors,
)


def spans(segments):
    return [(seg.start, seg.length) for seg in segments]


class AllocateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ids = SequentialIds()
        self.snapshot = initialize(100000, self.ids)

    def alloc(self, snapshot, name, size, policy=Policy.FIRST_FIT, cursor=0):
        result = allocate(snapshot, name, size, policy, cursor, new_id=self.ids)
        self.assertTrue(result.ok, result.message)
        return result

    def test_split_keeps_free_identity(self) -> None:
        result = self.alloc(self.snapshot, "A", 3000)
        (free,) = result.snapshot.free
        (job,) = result.snapshot.allocated
        self.assertEqual(free.id, "seg-1")
        self.assertEqual((free.start, free.length), (3000, 97000))
        self.assertEqual(job.id, "seg-2")
        self.assertEqual((job.start, job.length, job.job_name), (0, 3000, "A"))
        self.assertEqual(result.cursor, 3000)
        self.assertEqual(result.message, "Allocated 3000B to job A")

    def test_exact_fit_consumes_free_segment(self) -> None:
        first = self.alloc(self.snapshot, "A", 40000)
        second = self.alloc(first.snapshot, "B", 60000)
        self.assertEqual(second.snapshot.free, ())
        self.assertEqual(second.segment.start, 40000)
        self.assertEqual(second.cursor, 100000)
        self.assertEqual(partition_errors(second.snapshot), [])

    def test_request_equal_to_total_memory_succeeds(self) -> None:
        result = self.alloc(self.snapshot, "ALL", 100000)
        self.assertEqual(result.snapshot.free, ())
        again = allocate(result.snapshot, "ONE", 1, cursor=result.cursor)
        self.assertEqual(again.error, ErrorKind.INSUFFICIENT_MEMORY)

    def test_validation_errors_leave_snapshot_unchanged(self) -> None:
        state = self.alloc(self.snapshot, "A", 1000).snapshot
        cases = [
            ("B", 0, ErrorKind.INVALID_SIZE),
            ("B", -5, ErrorKind.INVALID_SIZE),
            ("A", 0, ErrorKind.INVALID_SIZE),
            ("A", 10, ErrorKind.DUPLICATE_JOB),
            ("B", 100001, ErrorKind.OVERSIZED_REQUEST),
            ("B", 99001, ErrorKind.INSUFFICIENT_MEMORY),
        ]
        for name, size, kind in cases:
            result = allocate(state, name, size, cursor=1000)
            self.assertFalse(result.ok)
            self.assertEqual(result.error, kind)
            self.assertIs(result.snapshot, state)
            self.assertEqual(result.cursor, 1000)
            self.assertIsNone(result.segment)

    def test_non_integer_size_is_a_programming_error(self) -> None:
        with self.assertRaises(TypeError):
            allocate(self.snapshot, "A", 1.5)

    def test_policies_choose_different_holes(self) -> None:
        snapshot = initialize(1000, self.ids)
        for name, size in [("A", 100), ("B", 50), ("C", 100), ("D", 30), ("E", 100)]:
            snapshot = self.alloc(snapshot, name, size).snapshot
        snapshot = deallocate(snapshot, "B").snapshot
        snapshot = deallocate(snapshot, "D").snapshot
        self.assertEqual(spans(snapshot.free), [(100, 50), (250, 30), (380, 620)])

        placed = {
            policy: allocate(snapshot, "X", 30, policy).segment.start
            for policy in (Policy.FIRST_FIT, Policy.BEST_FIT, Policy.WORST_FIT)
        }
        self.assertEqual(placed[Policy.FIRST_FIT], 100)
        self.assertEqual(placed[Policy.BEST_FIT], 250)
        self.assertEqual(placed[Policy.WORST_FIT], 380)

    def test_next_fit_resumes_after_last_allocation(self) -> None:
        snapshot = initialize(1000, self.ids)
        cursor = 0
        for name in "ABC":
            result = self.alloc(snapshot, name, 100, Policy.NEXT_FIT, cursor)
            snapshot, cursor = result.snapshot, result.cursor
        snapshot = deallocate(snapshot, "A").snapshot
        self.assertEqual(cursor, 300)

        next_fit = self.alloc(snapshot, "D", 50, Policy.NEXT_FIT, cursor)
        first_fit = self.alloc(snapshot, "D", 50, Policy.FIRST_FIT, cursor)
        self.assertEqual(next_fit.segment.start, 300)
        self.assertEqual(first_fit.segment.start, 0)


class DeallocateTests(unittest.TestCase):
    def setUp(self) -> None:
        self.ids = SequentialIds()
        snapshot = initialize(100000, self.ids)
        for name, size in [("A", 3000), ("B", 3000), ("C", 5000), ("D", 15000), ("E", 2000)]:
            snapshot = allocate(snapshot, name, size, new_id=self.ids).snapshot
        self.snapshot = snapshot

    def test_reference_scenario(self) -> None:
        self.assertEqual(spans(self.snapshot.free), [(28000, 72000)])

        freed = deallocate(self.snapshot, "B", new_id=self.ids)
        self.assertTrue(freed.ok)
        self.assertEqual(freed.released, 3000)
        self.assertEqual(freed.message, "Released job B (3000B freed)")
        self.assertEqual(spans(freed.snapshot.free), [(3000, 3000), (28000, 72000)])

        placed = allocate(freed.snapshot, "F", 4000, Policy.FIRST_FIT, new_id=self.ids)
        self.assertEqual(placed.segment.start, 28000)
        self.assertEqual(spans(placed.snapshot.free), [(3000, 3000), (32000, 68000)])

    def test_isolated_release_gets_fresh_identity(self) -> None:
        freed = deallocate(self.snapshot, "B", new_id=self.ids).snapshot
        hole = freed.segment_at(3000)
        self.assertTrue(hole.is_free)
        self.assertNotIn(hole.id, {seg.id for seg in self.snapshot.free + self.snapshot.allocated})
        self.assertEqual(freed.free[-1].id, self.snapshot.free[-1].id)

    def test_coalesces_with_both_neighbours(self) -> None:
        snapshot = deallocate(self.snapshot, "B", new_id=self.ids).snapshot
        snapshot = deallocate(snapshot, "D", new_id=self.ids).snapshot
        self.assertEqual(spans(snapshot.free), [(3000, 3000), (11000, 15000), (28000, 72000)])

        merged = deallocate(snapshot, "C", new_id=self.ids).snapshot
        self.assertEqual(spans(merged.free), [(3000, 23000), (28000, 72000)])
        old_ids = {seg.id for seg in snapshot.free}
        self.assertNotIn(merged.free[0].id, old_ids)

        tail = deallocate(merged, "E", new_id=self.ids).snapshot
        self.assertEqual(spans(tail.free), [(3000, 97000)])
        self.assertEqual(partition_errors(tail), [])

    def test_missing_job(self) -> None:
        result = deallocate(self.snapshot, "Z")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, ErrorKind.JOB_NOT_FOUND)
        self.assertEqual(result.message, "Job not found: Z")
        self.assertIs(result.snapshot, self.snapshot)
        with self.assertRaises(PartitionError) as ctx:
            result.raise_for_error()
        self.assertEqual(ctx.exception.kind, ErrorKind.JOB_NOT_FOUND)

    def test_allocate_then_free_round_trips(self) -> None:
        before = deallocate(self.snapshot, "C").snapshot
        for policy in Policy:
            placed = allocate(before, "X", 1234, policy, cursor=11000)
            after = deallocate(placed.snapshot, "X").snapshot
            self.assertEqual(spans(after.free), spans(before.free), policy)
            self.assertEqual(after.allocated, before.allocated)


if __name__ == "__main__":
    unittest.main()
