import asyncio
import concurrent.futures
import threading
import time
import unittest

from tests._test_path import SRC  # noqa: F401

from imageshop.ui.async_runner import AsyncRunner


class TestAsyncRunner(unittest.TestCase):
    def setUp(self):
        self.posted = []
        self.runner = AsyncRunner(post=self.posted.append).start()

    def tearDown(self):
        self.runner.stop()

    def _drain(self):
        for fn in list(self.posted):
            fn()

    def test_submit_runs_on_loop_thread_and_posts_result(self):
        seen = {}

        async def work():
            seen["thread"] = threading.current_thread().name
            await asyncio.sleep(0)
            return 42

        results = []
        fut = self.runner.submit(work(), lambda r, e: results.append((r, e)))
        self.assertEqual(fut.result(timeout=2), 42)
        self._wait_posted(1)
        self._drain()

        self.assertEqual(seen["thread"], "imageshop-loop")
        self.assertEqual(results, [(42, None)])

    def test_errors_are_posted(self):
        async def boom():
            raise ValueError("nope")

        results = []
        fut = self.runner.submit(boom(), lambda r, e: results.append((r, e)))
        with self.assertRaises(ValueError):
            fut.result(timeout=2)
        self._wait_posted(1)
        self._drain()

        self.assertIsNone(results[0][0])
        self.assertIsInstance(results[0][1], ValueError)

    def test_cancelled_task_still_posts(self):
        results = []
        fut = self.runner.submit(asyncio.sleep(30), lambda r, e: results.append((r, e)))
        self.assertTrue(fut.cancel())
        self._wait_posted(1)
        self._drain()

        self.assertEqual(len(results), 1)
        self.assertIsNone(results[0][0])
        self.assertIsInstance(results[0][1], concurrent.futures.CancelledError)

    def test_call_plain_function(self):
        fut = self.runner.call(lambda a, b: a + b, 2, 3)
        self.assertEqual(fut.result(timeout=2), 5)

    def _wait_posted(self, n, timeout=2.0):
        # done-callbacks fire on the loop thread just after the future resolves
        end = time.monotonic() + timeout
        while time.monotonic() < end:
            if len(self.posted) >= n:
                return
            time.sleep(0.01)
        self.fail("nothing was posted back")
