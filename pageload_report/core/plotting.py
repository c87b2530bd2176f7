# pageload_report/core/plotting.py
from __future__ import annotations
from pathlib import Path
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from .classify import BounceCfg
from .schema import browser_sort_key


def _finish(out_path: Path, dpi: int, what: str, rect=None) -> Path:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if rect is None:
        plt.tight_layout()
    else:
        plt.tight_layout(rect=rect)
    plt.savefig(out_path, dpi=dpi)
    plt.close()
    print(f"[OK] {what} → {out_path}")
    return out_path


def save_chronological_plot(means: pd.DataFrame, out_path: Path, title: str,
                            dpi: int = 160) -> Path | None:
    """Mean offset per event (x, in firing order) with one line per browser."""
    if means.empty:
        print(f"[INFO] {title}: no offsets available; skipping chronological plot.")
        return None

    x = np.arange(len(means.index))
    plt.figure(figsize=(12, 6))
    for browser in means.columns:
        plt.plot(x, means[browser].to_numpy(float), marker="o", label=browser)
    plt.xticks(x, means.index, rotation=60, ha="right", fontsize=8)
    plt.xlabel("Event (chronological)")
    plt.ylabel("Mean offset from navigationStart [ms]")
    plt.title(f"{title} — mean event offsets")
    plt.grid(True, alpha=0.3)
    plt.legend(fontsize=8, ncol=2, loc="upper left", frameon=False)
    return _finish(out_path, dpi, "chronological plot")


def save_load_time_boxplot(derived: pd.DataFrame, event: str, out_path: Path, title: str,
                           dpi: int = 160, threshold_ms: float | None = None) -> Path | None:
    if event not in derived.columns:
        print(f"[INFO] {title}: column '{event}' missing; skipping load time plot.")
        return None
    browsers = sorted(pd.unique(derived["Browser"].dropna()), key=browser_sort_key)
    data, labels = [], []
    for b in browsers:
        v = derived.loc[derived["Browser"] == b, event].dropna().to_numpy(float)
        if v.size:
            data.append(v)
            labels.append(b)
    if not data:
        print(f"[INFO] {title}: column '{event}' contains no numeric data; skipping load time plot.")
        return None

    plt.figure(figsize=(10, 6))
    plt.boxplot(data, showfliers=False)
    plt.xticks(range(1, len(labels) + 1), labels, rotation=15, fontsize=9)
    if threshold_ms is not None:
        plt.axhline(threshold_ms, color="tab:red", linestyle="--", linewidth=1,
                    label=f"{threshold_ms:g} ms")
        plt.legend(fontsize=8, frameon=False)
    plt.ylabel(f"{event} offset [ms]")
    plt.title(f"{title} — {event} per browser")
    plt.grid(True, axis="y", alpha=0.3)
    return _finish(out_path, dpi, "load time plot")


def save_bounce_plot(counts: pd.DataFrame, bcfg: BounceCfg, out_path: Path, title: str,
                     dpi: int = 160) -> Path | None:
    """Stacked bars of fast/slow load counts per browser."""
    if counts.empty or int(counts.to_numpy().sum()) == 0:
        print(f"[INFO] {title}: no classified loads; skipping bounce plot.")
        return None

    x = np.arange(len(counts.index))
    fast = counts[bcfg.fast_label].to_numpy(int)
    slow = counts[bcfg.slow_label].to_numpy(int)
    plt.figure(figsize=(10, 6))
    plt.bar(x, fast, label=bcfg.fast_label, color="tab:green")
    plt.bar(x, slow, bottom=fast, label=bcfg.slow_label, color="tab:red")
    plt.xticks(x, counts.index, rotation=15, fontsize=9)
    plt.ylabel("Page loads")
    plt.title(f"{title} — {bcfg.event} vs {bcfg.threshold_ms:g} ms bounce threshold")
    plt.grid(True, axis="y", alpha=0.3)
    plt.legend(fontsize=8, loc="upper center", bbox_to_anchor=(0.5, -0.12), ncol=2, frameon=False)
    return _finish(out_path, dpi, "bounce plot", rect=[0, 0.05, 1, 1])


def save_event_means_plot(means: pd.DataFrame, out_path: Path, title: str,
                          dpi: int = 160) -> Path | None:
    """Grouped horizontal bars: one group per event, one bar per browser."""
    if means.empty:
        print(f"[INFO] {title}: no offsets available; skipping event means plot.")
        return None

    n_events, n_browsers = means.shape
    y = np.arange(n_events)
    height = 0.8 / max(n_browsers, 1)
    plt.figure(figsize=(11, max(4, 0.45 * n_events + 1)))
    for k, browser in enumerate(means.columns):
        plt.barh(y + k * height, means[browser].fillna(0).to_numpy(float), height=height, label=browser)
    plt.yticks(y + height * (n_browsers - 1) / 2, means.index, fontsize=8)
    plt.gca().invert_yaxis()
    plt.xlabel("Mean offset from navigationStart [ms]")
    plt.title(f"{title} — mean offset per event")
    plt.grid(True, axis="x", alpha=0.3)
    plt.legend(fontsize=8, loc="upper center", bbox_to_anchor=(0.5, -0.08), ncol=2, frameon=False)
    return _finish(out_path, dpi, "event means plot", rect=[0, 0.06, 1, 1])
