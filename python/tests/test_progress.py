"""
Tests for progress accounting and the console spinner.
"""

import asyncio
import io
import unittest

from zip_ops import ConsoleProgressDisplay, ProgressTracker


class TestProgressTracker(unittest.TestCase):
    def test_start_resets_and_notifies(self):
        seen = []
        tracker = ProgressTracker([lambda current, total: seen.append((current, total))])

        tracker.start(4)
        tracker.advance()
        tracker.start(2)

        self.assertEqual(seen, [(0, 4), (1, 4), (0, 2)])
        self.assertEqual(tracker.files_processed, 0)

    def test_advance_never_exceeds_total(self):
        tracker = ProgressTracker()
        tracker.start(2)

        tracker.advance(5)

        self.assertEqual(tracker.files_processed, 2)
        self.assertEqual(tracker.percentage, 100)

    def test_non_positive_advance_is_ignored(self):
        seen = []
        tracker = ProgressTracker()
        tracker.start(3)
        tracker.subscribe(lambda current, total: seen.append(current))

        tracker.advance(0)

        self.assertEqual(seen, [])

    def test_percentage(self):
        tracker = ProgressTracker()
        self.assertEqual(tracker.percentage, 0)

        tracker.start(3)
        tracker.advance()
        self.assertEqual(tracker.percentage, 33)


class TestConsoleProgressDisplay(unittest.IsolatedAsyncioTestCase):
    async def test_spinner_draws_and_stops(self):
        stream = io.StringIO()
        tracker = ProgressTracker()
        tracker.start(4)
        tracker.advance(2)
        display = ConsoleProgressDisplay(tracker, interval=0.01, stream=stream)

        display.start()
        await asyncio.sleep(0.05)
        await display.stop()

        output = stream.getvalue()
        self.assertIn("Compressing files... 50% (2/4)", output)
        self.assertTrue(output.endswith("\r"))
        self.assertFalse(display.is_running)

    async def test_stop_is_idempotent(self):
        stream = io.StringIO()
        display = ConsoleProgressDisplay(ProgressTracker(), stream=stream)

        await display.stop()
        display.start()
        await display.stop()
        await display.stop()

        self.assertFalse(display.is_running)

    def test_frames_cycle(self):
        display = ConsoleProgressDisplay(ProgressTracker(), stream=io.StringIO())
        frames = {display.render_frame()[1] for _ in range(20)}
        self.assertEqual(len(frames), 10)


if __name__ == "__main__":
    unittest.main()
