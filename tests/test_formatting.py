#!/usr/bin/env python3

import unittest

from photos_backup_cli.models.stats import StatsSnapshot
from photos_backup_cli.utils.formatting import (
    format_duration,
    format_progress,
    format_size,
)


class TestFormatting(unittest.TestCase):
    def test_when_formatting_sizes_then_uses_decimal_units(self):
        self.assertEqual(format_size(0), "0 B")
        self.assertEqual(format_size(999), "999 B")
        self.assertEqual(format_size(1500), "1.5 kB")
        self.assertEqual(format_size(145_000_000), "145 MB")

    def test_when_formatting_durations_then_drops_empty_units(self):
        self.assertEqual(format_duration(0), "0s")
        self.assertEqual(format_duration(125), "2m 5s")
        self.assertEqual(format_duration(3600), "1h")

    def test_when_formatting_progress_then_lists_every_counter(self):
        """Should produce the one-line summary logged at page boundaries."""
        snapshot = StatsSnapshot(
            total=10, downloaded=6, skipped=3, errors=1, total_size=2_500_000, elapsed=1.0
        )
        self.assertEqual(
            format_progress(snapshot),
            "Processed: 10, Downloaded: 6, Skipped: 3, Errors: 1, Total Size: 2.5 MB",
        )


if __name__ == "__main__":
    unittest.main()
