# pageload_report/core/classify.py
from __future__ import annotations
from dataclasses import dataclass
import logging
import pandas as pd

from .schema import browser_sort_key

_LOG = logging.getLogger(__name__)

# loads per browser in the original study: 200 pages x 10 runs
DEFAULT_NORMALIZATION_CONSTANT = 2000

@dataclass(frozen=True)
class BounceCfg:
    threshold_ms: float = 6000.0
    event: str = "loadEventEnd"
    normalization_constant: int = DEFAULT_NORMALIZATION_CONSTANT
    slow_label: str = "longer than 6 sec"
    fast_label: str = "within 6 sec"


def prepare_bounce(global_cfg: dict | None) -> BounceCfg:
    """Read the ``bounce`` section of the config; missing keys keep their defaults."""
    b = (global_cfg or {}).get("bounce", {}) or {}
    d = BounceCfg()
    threshold = float(b.get("threshold_ms", d.threshold_ms))
    norm = int(b.get("normalization_constant", d.normalization_constant))
    if norm <= 0:
        raise ValueError(f"bounce.normalization_constant must be positive, got {norm}")
    secs = f"{threshold / 1000.0:g}"
    return BounceCfg(
        threshold_ms=threshold,
        event=str(b.get("event", d.event)),
        normalization_constant=norm,
        slow_label=str(b.get("slow_label", f"longer than {secs} sec")),
        fast_label=str(b.get("fast_label", f"within {secs} sec")),
    )


def classify_load(offset, bcfg: BounceCfg) -> str | None:
    if offset is None or pd.isna(offset):
        return None
    return bcfg.slow_label if float(offset) > bcfg.threshold_ms else bcfg.fast_label


def classify_loads(derived: pd.DataFrame, bcfg: BounceCfg) -> pd.DataFrame:
    """Copy of ``derived`` with a ``bounce_class`` column; rows lacking the event keep NaN."""
    out = derived.copy()
    if bcfg.event not in out.columns:
        _LOG.info("event '%s' absent from derived table; no load can be classified", bcfg.event)
        out["bounce_class"] = pd.Series(pd.NA, index=out.index, dtype="object")
        return out
    out["bounce_class"] = pd.Series(
        [classify_load(v, bcfg) for v in out[bcfg.event].tolist()], index=out.index, dtype="object")
    return out


def bounce_counts(classified: pd.DataFrame, bcfg: BounceCfg) -> pd.DataFrame:
    """Browser x {fast, slow} count table (missing classes excluded)."""
    cols = [bcfg.fast_label, bcfg.slow_label]
    valid = classified.dropna(subset=["bounce_class"])
    if valid.empty:
        return pd.DataFrame(columns=cols, dtype=int)
    counts = (valid.groupby(["Browser", "bounce_class"]).size()
                   .unstack("bounce_class", fill_value=0)
                   .reindex(columns=cols, fill_value=0))
    counts = counts.loc[sorted(counts.index, key=browser_sort_key)]
    counts.index.name = "Browser"
    counts.columns.name = None
    return counts.astype(int)


def fast_slow_ratio(classified: pd.DataFrame, bcfg: BounceCfg) -> pd.DataFrame:
    """
    Share of fast and slow loads per browser.

    Counts are divided by the fixed ``normalization_constant`` of the study
    (pages x runs per browser), not by the number of rows observed, so the
    shares only sum to 1 when the input holds exactly that many valid loads.
    """
    counts = bounce_counts(classified, bcfg)
    ratio = counts / float(bcfg.normalization_constant)
    ratio.columns = [f"{c} ratio" for c in counts.columns]
    out = pd.concat([counts, ratio], axis=1)
    out.index.name = "Browser"
    return out.reset_index()
