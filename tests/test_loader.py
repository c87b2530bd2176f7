from pathlib import Path
import tempfile
import unittest
import zipfile
import pandas as pd

from pageload_report.core.normalize import compute_offsets
from pageload_report.core.schema import BROWSER_LABELS
from pageload_report.loaders import csv_loader
from pageload_report.loaders.csv_loader import MissingColumnsError
from pageload_report.utils.detect import resolve_input
from tests.helpers import raw_row, write_csv


class CsvLoaderTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_browser_labels_are_mapped(self):
        rows = [raw_row(browser=b, navigationStart=1000, loadEventEnd=2000) for b in BROWSER_LABELS]
        study = csv_loader.load(write_csv(rows, self.tmp / "pageloadstudy.csv"))
        self.assertEqual(list(BROWSER_LABELS.values()), study.frame["Browser"].tolist())
        self.assertEqual("pageloadstudy", study.name)
        self.assertEqual("csv", study.loader)

    def test_loaded_row_normalizes_to_chrome_offset(self):
        rows = [raw_row(domain="http://a.com", browser="chrome_normal", navigationStart=1000, loadEventEnd=2500)]
        study = csv_loader.load(write_csv(rows, self.tmp / "study.csv"))
        derived = compute_offsets(study.frame)
        self.assertEqual("Chrome", derived.loc[0, "Browser"])
        self.assertEqual(1500.0, derived.loc[0, "loadEventEnd_offset"])

    def test_unknown_browser_is_kept(self):
        rows = [raw_row(browser="safari_normal", navigationStart=1000)]
        with self.assertLogs("pageload_report.loaders.csv_loader", level="WARNING"):
            study = csv_loader.load(write_csv(rows, self.tmp / "study.csv"))
        self.assertEqual("safari_normal", study.frame.loc[0, "Browser"])

    def test_blank_browser_is_missing_not_a_label(self):
        rows = [
            raw_row(domain="http://a.com", browser="chrome_normal", navigationStart=1000, loadEventEnd=2000),
            raw_row(domain="http://b.com", browser="", navigationStart=1000, loadEventEnd=2500),
            raw_row(domain="http://c.com", browser="   ", navigationStart=1000, loadEventEnd=2600),
        ]
        study = csv_loader.load(write_csv(rows, self.tmp / "study.csv"))
        frame = study.frame
        self.assertEqual(3, len(frame))
        self.assertEqual("Chrome", frame.loc[0, "Browser"])
        self.assertTrue(pd.isna(frame.loc[1, "Browser"]))
        self.assertTrue(pd.isna(frame.loc[2, "Browser"]))
        self.assertEqual(["Chrome"], frame["Browser"].dropna().unique().tolist())

    def test_line_with_extra_field_is_skipped(self):
        rows = [raw_row(domain=d, navigationStart=1000, loadEventEnd=2000)
                for d in ("http://a.com", "http://b.com", "http://c.com")]
        path = write_csv(rows, self.tmp / "study.csv")
        lines = path.read_text(encoding="utf-8").splitlines()
        lines[2] = lines[2] + ",surplus"
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        with self.assertLogs("pageload_report.loaders.csv_loader", level="WARNING") as logs:
            study = csv_loader.load(path)
        self.assertEqual(["http://a.com", "http://c.com"], study.frame["Domain"].tolist())
        self.assertTrue(any("skipped 1 malformed line" in m for m in logs.output))

    def test_empty_and_malformed_timestamps_become_missing(self):
        rows = [raw_row(navigationStart=1000, fetchStart="", responseEnd="oops", loadEventEnd=2500)]
        study = csv_loader.load(write_csv(rows, self.tmp / "study.csv"))
        frame = study.frame
        self.assertEqual(1, len(frame))
        self.assertTrue(pd.isna(frame.loc[0, "fetchStart"]))
        self.assertTrue(pd.isna(frame.loc[0, "responseEnd"]))
        self.assertEqual(2500.0, frame.loc[0, "loadEventEnd"])

    def test_missing_schema_column_fails_fast(self):
        rows = [raw_row(navigationStart=1000)]
        df = pd.DataFrame(rows).drop(columns=["loadEventEnd", "Load Time"])
        path = self.tmp / "study.csv"
        df.to_csv(path, index=False)
        with self.assertRaises(MissingColumnsError) as ctx:
            csv_loader.load(path)
        self.assertEqual(["Load Time", "loadEventEnd"], ctx.exception.missing)
        self.assertIn("loadEventEnd", str(ctx.exception))

    def test_extra_columns_are_ignored(self):
        row = raw_row(navigationStart=1000)
        row["Comment"] = "retry"
        path = self.tmp / "study.csv"
        pd.DataFrame([row]).to_csv(path, index=False)
        study = csv_loader.load(path)
        self.assertNotIn("Comment", study.frame.columns)

    def test_zip_with_csv_member(self):
        csv_path = write_csv([raw_row(navigationStart=1000, loadEventEnd=1100)], self.tmp / "pageloadstudy.csv")
        zip_path = self.tmp / "study.zip"
        with zipfile.ZipFile(zip_path, "w") as zf:
            zf.write(csv_path, arcname="pageloadstudy.csv")
        study = csv_loader.load(zip_path)
        self.assertEqual("csvzip", study.loader)
        self.assertEqual("pageloadstudy", study.name)
        self.assertEqual(1, len(study.frame))

    def test_zip_member_follows_configured_file_name(self):
        study_csv = write_csv([raw_row(navigationStart=1000)] * 2, self.tmp / "pageloadstudy.csv")
        other_csv = write_csv([raw_row(navigationStart=1000)] * 3, self.tmp / "aaa.csv")
        zip_path = self.tmp / "study.zip"
        with zipfile.ZipFile(zip_path, "w") as zf:
            zf.write(other_csv, arcname="aaa.csv")
            zf.write(study_csv, arcname="pageloadstudy.csv")
        with self.assertLogs("pageload_report.loaders.csv_loader", level="WARNING"):
            default = csv_loader.load(zip_path)
        self.assertEqual("pageloadstudy", default.name)
        self.assertEqual(2, len(default.frame))
        with self.assertLogs("pageload_report.loaders.csv_loader", level="WARNING"):
            chosen = csv_loader.load(zip_path, {"input": {"file_name": "aaa.csv"}})
        self.assertEqual("aaa", chosen.name)
        self.assertEqual(3, len(chosen.frame))

    def test_missing_file_raises(self):
        with self.assertRaises(FileNotFoundError):
            csv_loader.load(self.tmp / "nope.csv")


class ResolveInputTests(unittest.TestCase):
    def test_folder_prefers_default_file_name(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_csv([raw_row()], root / "pageloadstudy.csv")
            write_csv([raw_row()], root / "other.csv")
            item = resolve_input(root)
            self.assertEqual("pageloadstudy.csv", item.path.name)
            self.assertEqual("csv", item.kind)

    def test_ambiguous_folder_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            write_csv([raw_row()], root / "a.csv")
            write_csv([raw_row()], root / "b.csv")
            with self.assertRaises(FileNotFoundError):
                resolve_input(root)

    def test_unknown_file_kind_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "notes.txt"
            path.write_text("x")
            with self.assertRaises(FileNotFoundError):
                resolve_input(path)


if __name__ == "__main__":
    unittest.main()
