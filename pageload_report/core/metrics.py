# pageload_report/core/metrics.py
from __future__ import annotations
from typing import Sequence
import numpy as np
import pandas as pd
from scipy import stats

from .schema import CHRONOLOGICAL_ORDER, browser_sort_key

STAT_COLUMNS = ["n", "mean_ms", "median_ms", "std_ms", "p25_ms", "p75_ms", "p90_ms", "max_ms"]

def offset_stats(values) -> dict:
    v = pd.to_numeric(pd.Series(values), errors="coerce").dropna().to_numpy(float)
    if v.size == 0:
        return {"n": 0, "mean_ms": np.nan, "median_ms": np.nan, "std_ms": np.nan,
                "p25_ms": np.nan, "p75_ms": np.nan, "p90_ms": np.nan, "max_ms": np.nan}
    return {
        "n": int(v.size),
        "mean_ms":   round(float(np.mean(v)), 3),
        "median_ms": round(float(np.median(v)), 3),
        "std_ms":    round(float(np.std(v, ddof=1)), 3) if v.size > 1 else np.nan,
        "p25_ms":    round(float(np.percentile(v, 25)), 3),
        "p75_ms":    round(float(np.percentile(v, 75)), 3),
        "p90_ms":    round(float(np.percentile(v, 90)), 3),
        "max_ms":    round(float(np.max(v)), 3),
    }

def _sorted_browsers(labels) -> list[str]:
    return sorted(pd.unique(pd.Series(labels).dropna()), key=browser_sort_key)


def event_summary(tidy: pd.DataFrame, event_order: Sequence[str] = CHRONOLOGICAL_ORDER) -> pd.DataFrame:
    """Statistics per (Browser, event) over the tidy offset table."""
    cols = ["Browser", "event"] + STAT_COLUMNS
    if tidy.empty:
        return pd.DataFrame(columns=cols)
    rank = {e: k for k, e in enumerate(event_order)}
    rows = []
    for (browser, event), g in tidy.groupby(["Browser", "event"], sort=False):
        r = {"Browser": browser, "event": event}
        r.update(offset_stats(g["offset"]))
        rows.append(r)
    rows.sort(key=lambda r: (browser_sort_key(r["Browser"]), rank.get(r["event"], len(rank))))
    return pd.DataFrame(rows, columns=cols)


def load_time_summary(derived: pd.DataFrame, event: str = "loadEventEnd") -> pd.DataFrame:
    """Statistics of one event's offset per browser."""
    cols = ["Browser"] + STAT_COLUMNS
    if event not in derived.columns:
        return pd.DataFrame(columns=cols)
    rows = []
    for browser in _sorted_browsers(derived["Browser"]):
        r = {"Browser": browser}
        r.update(offset_stats(derived.loc[derived["Browser"] == browser, event]))
        rows.append(r)
    return pd.DataFrame(rows, columns=cols)


def chronological_means(tidy: pd.DataFrame, event_order: Sequence[str] = CHRONOLOGICAL_ORDER) -> pd.DataFrame:
    """event x Browser table of mean offsets, rows in event order, absent events skipped."""
    if tidy.empty:
        return pd.DataFrame()
    means = tidy.pivot_table(index="event", columns="Browser", values="offset", aggfunc="mean")
    events = [e for e in event_order if e in means.index]
    means = means.reindex(index=events, columns=_sorted_browsers(means.columns))
    means.columns.name = None
    return means


def fastest_browser_counts(derived: pd.DataFrame, event: str = "loadEventEnd") -> pd.DataFrame:
    """
    For every page, pick the browser with the lowest median offset of ``event``
    and count the wins per browser. Pages without any valid offset are skipped.
    """
    cols = ["Browser", "pages_fastest", "share"]
    if event not in derived.columns or derived.empty:
        return pd.DataFrame(columns=cols)
    med = (derived.dropna(subset=[event])
                  .groupby(["Domain", "Browser"])[event].median()
                  .reset_index())
    if med.empty:
        return pd.DataFrame(columns=cols)
    winners = med.loc[med.groupby("Domain")[event].idxmin(), "Browser"]
    counts = winners.value_counts()
    browsers = _sorted_browsers(derived["Browser"])
    n_pages = int(counts.sum())
    rows = [{"Browser": b,
             "pages_fastest": int(counts.get(b, 0)),
             "share": round(int(counts.get(b, 0)) / n_pages, 4)} for b in browsers]
    return pd.DataFrame(rows, columns=cols)


def compare_browsers(derived: pd.DataFrame, baseline: str = "Chrome",
                     event: str = "loadEventEnd") -> pd.DataFrame:
    """Two-sided Mann-Whitney U test of each browser's offsets against ``baseline``."""
    cols = ["Browser", "baseline", "n", "n_baseline", "median_ms", "median_baseline_ms",
            "u_statistic", "p_value"]
    if event not in derived.columns:
        return pd.DataFrame(columns=cols)
    base = derived.loc[derived["Browser"] == baseline, event].dropna().to_numpy(float)
    rows = []
    for browser in _sorted_browsers(derived["Browser"]):
        if browser == baseline:
            continue
        other = derived.loc[derived["Browser"] == browser, event].dropna().to_numpy(float)
        if base.size == 0 or other.size == 0:
            u, p = np.nan, np.nan
        else:
            res = stats.mannwhitneyu(other, base, alternative="two-sided")
            u, p = float(res.statistic), float(res.pvalue)
        rows.append({
            "Browser": browser,
            "baseline": baseline,
            "n": int(other.size),
            "n_baseline": int(base.size),
            "median_ms": float(np.median(other)) if other.size else np.nan,
            "median_baseline_ms": float(np.median(base)) if base.size else np.nan,
            "u_statistic": u,
            "p_value": p,
        })
    return pd.DataFrame(rows, columns=cols)
