# pageload_report/core/normalize.py
from __future__ import annotations
import logging
from typing import Sequence
import pandas as pd

from .schema import (
    CHRONOLOGICAL_ORDER,
    EVENT_COLUMNS,
    ID_COLUMNS,
    OFFSET_SUFFIX,
    REFERENCE_COLUMN,
)

_LOG = logging.getLogger(__name__)


def to_float(s) -> pd.Series:
    if pd.api.types.is_numeric_dtype(s):
        return s.astype(float)
    return pd.to_numeric(s.astype(str).str.strip(), errors="coerce")


def _offset_columns(df: pd.DataFrame) -> list[str]:
    return [e + OFFSET_SUFFIX for e in EVENT_COLUMNS if e + OFFSET_SUFFIX in df.columns]


def compute_offsets(raw: pd.DataFrame) -> pd.DataFrame:
    """
    Replace every timing event by its offset from ``navigationStart``.

    The result holds the identifier columns plus one ``<event>_offset`` column
    per event present in ``raw``. Negative offsets become NaN, as do offsets of
    rows whose reference or event timestamp is missing. Rows are never dropped.
    """
    if REFERENCE_COLUMN not in raw.columns:
        raise KeyError(f"reference column '{REFERENCE_COLUMN}' missing")

    ref = to_float(raw[REFERENCE_COLUMN])
    cols: dict[str, pd.Series] = {c: raw[c] for c in ID_COLUMNS if c in raw.columns}
    for event in EVENT_COLUMNS:
        if event not in raw.columns:
            continue
        offset = to_float(raw[event]) - ref
        cols[event + OFFSET_SUFFIX] = offset.where(offset >= 0)

    out = pd.DataFrame(cols, index=raw.index)
    n_no_ref = int(ref.isna().sum())
    if n_no_ref:
        _LOG.debug("%d row(s) without numeric %s; their offsets are all missing", n_no_ref, REFERENCE_COLUMN)
    return out


def drop_empty_offsets(df: pd.DataFrame) -> pd.DataFrame:
    empty = [c for c in _offset_columns(df) if df[c].isna().all()]
    if empty:
        _LOG.debug("dropping offset columns without valid data: %s", ", ".join(empty))
    return df.drop(columns=empty)


def strip_offset_suffix(df: pd.DataFrame) -> pd.DataFrame:
    return df.rename(columns={c: c[: -len(OFFSET_SUFFIX)] for c in _offset_columns(df)})


def normalize_timings(raw: pd.DataFrame) -> pd.DataFrame:
    """Raw records -> derived records (one offset column per event, named after the event)."""
    return strip_offset_suffix(drop_empty_offsets(compute_offsets(raw)))


def to_tidy(derived: pd.DataFrame, event_order: Sequence[str] | None = None) -> pd.DataFrame:
    """
    Long table (Domain, Browser, event, offset) without missing offsets,
    rows ordered by ``event_order`` (canonical chronological order by default).
    """
    order = tuple(event_order) if event_order is not None else CHRONOLOGICAL_ORDER
    events = [e for e in EVENT_COLUMNS if e in derived.columns]
    id_vars = [c for c in ("Domain", "Browser") if c in derived.columns]
    if not events:
        return pd.DataFrame(columns=id_vars + ["event", "offset"])

    tidy = derived.melt(id_vars=id_vars, value_vars=events, var_name="event", value_name="offset")
    tidy = tidy.dropna(subset=["offset"])
    rank = {e: k for k, e in enumerate(order)}
    tidy = tidy.sort_values("event", key=lambda s: s.map(rank).fillna(len(order)), kind="stable")
    tidy["offset"] = tidy["offset"].astype(float)
    return tidy.reset_index(drop=True)
