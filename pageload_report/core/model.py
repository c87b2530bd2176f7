# pageload_report/core/model.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import pandas as pd

@dataclass(frozen=True)
class StudyData:
    name: str                 # e.g. pageloadstudy
    frame: pd.DataFrame       # raw records: ID columns + numeric timing columns, browser labels mapped
    source_path: Path         # file on disk (.csv/.zip)
    loader: str               # "csv" or "csvzip"
