#!/usr/bin/env python3

import asyncio
import unittest

from photos_backup_cli.core.task_group import DownloadTaskGroup


class TestDownloadTaskGroup(unittest.IsolatedAsyncioTestCase):
    """Test cases for bounded fan-out and the completion barrier."""

    async def test_when_many_tasks_spawned_then_never_exceeds_limit(self):
        """Should keep at most `limit` tasks running at once."""
        group = DownloadTaskGroup(3)
        running = 0
        peak = 0

        async def work():
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1

        for _ in range(12):
            await group.spawn(work)
            self.assertLessEqual(group.in_flight, 3)
        await group.wait()

        self.assertEqual(peak, 3)
        self.assertEqual(running, 0)

    async def test_when_wait_returns_then_every_task_has_finished(self):
        group = DownloadTaskGroup(2)
        finished = []

        async def work(n):
            await asyncio.sleep(0.01 * n)
            finished.append(n)

        for n in range(5):
            await group.spawn(work, n)
        await group.wait()

        self.assertEqual(sorted(finished), [0, 1, 2, 3, 4])
        self.assertEqual(group.in_flight, 0)

    async def test_when_task_fails_in_fail_fast_mode_then_wait_raises_first_error(self):
        """Should raise the failure only once siblings have completed."""
        group = DownloadTaskGroup(4)
        finished = []

        async def fail():
            raise RuntimeError("boom")

        async def slow():
            await asyncio.sleep(0.02)
            finished.append("slow")

        await group.spawn(fail)
        await group.spawn(slow)
        await group.spawn(slow)

        with self.assertRaisesRegex(RuntimeError, "boom"):
            await group.wait()
        self.assertEqual(finished, ["slow", "slow"])

    async def test_when_task_fails_in_lenient_mode_then_wait_returns_errors(self):
        group = DownloadTaskGroup(2, fail_fast=False)

        async def fail(message):
            raise ValueError(message)

        async def ok():
            return None

        await group.spawn(fail, "first")
        await group.spawn(ok)
        await group.spawn(fail, "second")

        errors = await group.wait()

        self.assertEqual(sorted(str(e) for e in errors), ["first", "second"])

    async def test_when_barrier_passed_then_errors_are_reset(self):
        group = DownloadTaskGroup(1, fail_fast=False)

        async def fail():
            raise ValueError("once")

        await group.spawn(fail)
        self.assertEqual(len(await group.wait()), 1)
        self.assertIsNone(group.first_error)
        self.assertEqual(await group.wait(), [])

    def test_when_limit_below_one_then_raises(self):
        with self.assertRaises(ValueError):
            DownloadTaskGroup(0)


if __name__ == "__main__":
    unittest.main()
