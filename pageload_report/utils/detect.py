# pageload_report/utils/detect.py
from __future__ import annotations
from pathlib import Path
import zipfile
from dataclasses import dataclass
from typing import Literal

DetectedKind = Literal["csvzip", "csv", "unknown"]
DEFAULT_STUDY_FILE = "pageloadstudy.csv"

@dataclass(frozen=True)
class DetectedItem:
    path: Path        # actual path on disk
    kind: DetectedKind

def _is_zip_with_csv(p: Path) -> bool:
    if not p.is_file() or not zipfile.is_zipfile(p):
        return False
    with zipfile.ZipFile(p, "r") as zf:
        return any(name.lower().endswith(".csv") for name in zf.namelist())

def detect_kind(p: Path) -> DetectedKind:
    """
    Classify a single path.
    - .csv  -> 'csv'
    - .zip (with any .csv member) -> 'csvzip'
    else    -> 'unknown'
    """
    if p.suffix.lower() == ".csv":
        return "csv"
    if p.suffix.lower() == ".zip" and _is_zip_with_csv(p):
        return "csvzip"
    return "unknown"

def resolve_input(root: Path, file_name: str = DEFAULT_STUDY_FILE) -> DetectedItem:
    """
    If 'root' is a file -> that file (if known).
    If 'root' is a folder -> '<root>/<file_name>' when present, else the single CSV/ZIP(CSV) in it.
    Raises FileNotFoundError when nothing usable is found or the choice is ambiguous.
    """
    if root.is_file():
        kind = detect_kind(root)
        if kind == "unknown":
            raise FileNotFoundError(f"not a CSV or ZIP(CSV) file: {root}")
        return DetectedItem(root.resolve(), kind)

    if not root.is_dir():
        raise FileNotFoundError(f"input path does not exist: {root}")

    preferred = root / file_name
    if preferred.is_file():
        return DetectedItem(preferred.resolve(), detect_kind(preferred))

    items = []
    for p in root.glob("*"):
        if not p.is_file():
            continue
        kind = detect_kind(p)
        if kind != "unknown":
            items.append(DetectedItem(p.resolve(), kind))
    # deterministic ordering
    items.sort(key=lambda x: (x.kind, str(x.path)))

    if not items:
        raise FileNotFoundError(f"no CSV/ZIP(CSV) input found under: {root}")
    if len(items) > 1:
        names = ", ".join(i.path.name for i in items)
        raise FileNotFoundError(f"several candidate inputs under {root} ({names}); point input.path at one")
    return items[0]
