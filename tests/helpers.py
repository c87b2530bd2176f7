from __future__ import annotations
from pathlib import Path
import pandas as pd

from pageload_report.core.schema import EXPECTED_COLUMNS


def raw_row(domain="http://a.com", browser="chrome_normal", **timings) -> dict:
    row = {c: "" for c in EXPECTED_COLUMNS}
    row.update({"Domain": domain, "Browser": browser, "Load Time": "1.5"})
    row.update({k: str(v) for k, v in timings.items()})
    return row


def write_csv(rows: list[dict], path: Path) -> Path:
    pd.DataFrame(rows, columns=list(EXPECTED_COLUMNS)).to_csv(path, index=False)
    return path


def raw_frame(rows: list[dict]) -> pd.DataFrame:
    df = pd.DataFrame(rows, columns=list(EXPECTED_COLUMNS))
    return df.replace({"": None})
