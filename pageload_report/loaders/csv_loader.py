# pageload_report/loaders/csv_loader.py
from __future__ import annotations
from pathlib import Path
import zipfile, io, logging
import pandas as pd

from ..core.normalize import to_float
from ..core.model import StudyData
from ..core.schema import BROWSER_LABELS, EXPECTED_COLUMNS, TIMING_COLUMNS, missing_columns
from ..utils.detect import DEFAULT_STUDY_FILE

_LOG = logging.getLogger(__name__)


class MissingColumnsError(ValueError):
    """The study file lacks columns of the page-load schema."""

    def __init__(self, source: str, missing: list[str]):
        self.source = source
        self.missing = list(missing)
        super().__init__(f"{source}: missing expected column(s): {', '.join(self.missing)}")


# ---------- filename helpers ----------
def infer_study_name(path: Path) -> str:
    """Public helper to derive the study label from a CSV/ZIP path."""
    return Path(path).stem


# ---------- CSV normalization ----------
def map_browser_labels(s: pd.Series) -> pd.Series:
    raw = s.str.strip()
    raw = raw.where(raw != "")                # blank cell -> missing browser
    mapped = raw.map(BROWSER_LABELS)
    unknown = sorted(set(raw[mapped.isna() & raw.notna()]))
    if unknown:
        _LOG.warning("unknown browser configuration(s) kept as-is: %s", ", ".join(unknown))
    return mapped.fillna(raw)


def _df_from_csv_bytes(buff: bytes, source: str) -> pd.DataFrame:
    skipped: list[list[str]] = []

    def _skip_line(fields: list[str]) -> None:
        skipped.append(fields)
        return None

    # python engine: lines with surplus fields go to _skip_line instead of aborting the read
    df = pd.read_csv(io.BytesIO(buff), sep=",", dtype=str, keep_default_na=True,
                     engine="python", on_bad_lines=_skip_line)
    if skipped:
        _LOG.warning("%s: skipped %d malformed line(s) with too many fields", source, len(skipped))
    df.columns = [str(c).strip() for c in df.columns]

    missing = missing_columns(df.columns)
    if missing:
        raise MissingColumnsError(source, missing)

    extra = [c for c in df.columns if c not in EXPECTED_COLUMNS]
    if extra:
        _LOG.debug("%s: ignoring column(s) outside the schema: %s", source, ", ".join(extra))

    cols = {
        "Domain":    df["Domain"].str.strip(),
        "Browser":   map_browser_labels(df["Browser"]),
        "Load Time": df["Load Time"],
    }
    for c in TIMING_COLUMNS:
        cols[c] = to_float(df[c])
    out = pd.DataFrame(cols)
    n_bad = int(out["navigationStart"].isna().sum())
    if n_bad:
        _LOG.info("%s: %d row(s) without a numeric navigationStart", source, n_bad)
    return out.reset_index(drop=True)


def _study_file_name(cfg: dict | None) -> str:
    inp = (cfg or {}).get("input", {}) if cfg else {}
    return str((inp or {}).get("file_name", DEFAULT_STUDY_FILE))


def _pick_member(members: list[str], file_name: str) -> str:
    """Archive member named like the configured study file, else the first CSV."""
    for m in members:
        if Path(m).name == file_name:
            return m
    return members[0]


# ---------- public loader ----------
def load(path: Path, cfg: dict | None = None) -> StudyData:
    """
    Accepts: a loose .csv file, or a .zip holding the study CSV
    (member named like cfg input.file_name, else the first CSV member).
    Returns: StudyData with the raw records (browser labels mapped, timings numeric).
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"input file not found: {path}")

    if path.suffix.lower() == ".csv":
        df = _df_from_csv_bytes(path.read_bytes(), path.name)
        _LOG.info("loaded %d record(s) from %s", len(df), path.name)
        return StudyData(name=infer_study_name(path), frame=df, source_path=path, loader="csv")

    with zipfile.ZipFile(path, "r") as zf:
        members = sorted(m for m in zf.namelist() if m.lower().endswith(".csv"))
        if not members:
            raise ValueError(f"{path.name}: archive contains no CSV member")
        member = _pick_member(members, _study_file_name(cfg))
        if len(members) > 1:
            _LOG.warning("%s: %d CSV members, using %s", path.name, len(members), member)
        df = _df_from_csv_bytes(zf.read(member), f"{path.name}:{member}")
    _LOG.info("loaded %d record(s) from %s", len(df), path.name)
    return StudyData(name=infer_study_name(Path(member)), frame=df, source_path=path, loader="csvzip")
