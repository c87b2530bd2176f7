import numpy as np
import pandas as pd
import unittest

from pageload_report.core.normalize import (
    compute_offsets,
    drop_empty_offsets,
    normalize_timings,
    strip_offset_suffix,
    to_tidy,
)
from pageload_report.core.schema import CHRONOLOGICAL_ORDER, EVENT_COLUMNS, REFERENCE_COLUMN
from tests.helpers import raw_frame, raw_row


class ComputeOffsetsTests(unittest.TestCase):
    def test_offset_is_difference_from_navigation_start(self):
        raw = raw_frame([raw_row(browser="Chrome", navigationStart=1000, loadEventEnd=2500)])
        out = compute_offsets(raw)
        self.assertEqual(1500.0, out.loc[0, "loadEventEnd_offset"])
        self.assertEqual("Chrome", out.loc[0, "Browser"])

    def test_negative_offset_becomes_missing(self):
        raw = raw_frame([raw_row(navigationStart=1000, domainLookupStart=900, domainLookupEnd=1000)])
        out = compute_offsets(raw)
        self.assertTrue(np.isnan(out.loc[0, "domainLookupStart_offset"]))
        # zero offset is valid
        self.assertEqual(0.0, out.loc[0, "domainLookupEnd_offset"])

    def test_reference_column_is_not_an_offset(self):
        raw = raw_frame([raw_row(navigationStart=1000, fetchStart=1001)])
        out = compute_offsets(raw)
        self.assertNotIn(REFERENCE_COLUMN, out.columns)
        self.assertNotIn(REFERENCE_COLUMN + "_offset", out.columns)

    def test_row_without_reference_is_kept_with_missing_offsets(self):
        raw = raw_frame([
            raw_row(domain="http://a.com", navigationStart=1000, loadEventEnd=1200),
            raw_row(domain="http://b.com", navigationStart="n/a", loadEventEnd=1200),
        ])
        out = compute_offsets(raw)
        self.assertEqual(2, len(out))
        offsets = out.loc[1, [e + "_offset" for e in EVENT_COLUMNS]]
        self.assertTrue(offsets.isna().all())

    def test_malformed_cell_only_affects_that_cell(self):
        raw = raw_frame([raw_row(navigationStart=1000, fetchStart="abc", responseEnd=1300)])
        out = compute_offsets(raw)
        self.assertTrue(np.isnan(out.loc[0, "fetchStart_offset"]))
        self.assertEqual(300.0, out.loc[0, "responseEnd_offset"])

    def test_input_is_not_mutated(self):
        raw = raw_frame([raw_row(navigationStart=1000, loadEventEnd=2500)])
        before = raw.copy()
        normalize_timings(raw)
        pd.testing.assert_frame_equal(before, raw)


class NormalizeTimingsTests(unittest.TestCase):
    def setUp(self):
        self.raw = raw_frame([
            raw_row(domain="http://a.com", navigationStart=1000, fetchStart=1010,
                    domainLookupStart=900, loadEventEnd=2500),
            raw_row(domain="http://b.com", navigationStart=2000, fetchStart=2005,
                    domainLookupStart=1500, loadEventEnd=2600),
        ])

    def test_all_invalid_column_is_dropped(self):
        out = normalize_timings(self.raw)
        self.assertNotIn("domainLookupStart", out.columns)
        # never-filled columns are dropped too
        self.assertNotIn("redirectStart", out.columns)

    def test_suffix_is_stripped(self):
        out = normalize_timings(self.raw)
        self.assertIn("loadEventEnd", out.columns)
        self.assertFalse(any(c.endswith("_offset") for c in out.columns))
        self.assertEqual([1500.0, 600.0], out["loadEventEnd"].tolist())

    def test_offsets_never_negative(self):
        out = normalize_timings(self.raw)
        events = [c for c in out.columns if c in EVENT_COLUMNS]
        values = out[events].to_numpy(float)
        self.assertTrue(np.all((values >= 0) | np.isnan(values)))

    def test_steps_compose(self):
        stepwise = strip_offset_suffix(drop_empty_offsets(compute_offsets(self.raw)))
        pd.testing.assert_frame_equal(stepwise, normalize_timings(self.raw))


class TidyTests(unittest.TestCase):
    def test_tidy_drops_missing_and_orders_chronologically(self):
        raw = raw_frame([
            raw_row(navigationStart=1000, loadEventEnd=2500, fetchStart=1010,
                    unloadEventStart=1001, domainLookupStart=900),
        ])
        tidy = to_tidy(normalize_timings(raw))
        self.assertEqual(["Domain", "Browser", "event", "offset"], list(tidy.columns))
        self.assertFalse(tidy["offset"].isna().any())
        self.assertNotIn(REFERENCE_COLUMN, set(tidy["event"]))
        rank = {e: k for k, e in enumerate(CHRONOLOGICAL_ORDER)}
        ranks = [rank[e] for e in tidy["event"]]
        self.assertEqual(sorted(ranks), ranks)
        self.assertEqual(["unloadEventStart", "fetchStart", "loadEventEnd"], tidy["event"].tolist())

    def test_tidy_of_table_without_events(self):
        derived = pd.DataFrame({"Domain": ["x"], "Browser": ["Chrome"], "Load Time": ["1"]})
        tidy = to_tidy(derived)
        self.assertTrue(tidy.empty)
        self.assertIn("offset", tidy.columns)


if __name__ == "__main__":
    unittest.main()
