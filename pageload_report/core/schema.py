# pageload_report/core/schema.py
from __future__ import annotations
from typing import Iterable

ID_COLUMNS: tuple[str, ...] = ("Domain", "Browser", "Load Time")
REFERENCE_COLUMN = "navigationStart"

# performance.timing fields in the order they appear in pageloadstudy.csv
TIMING_COLUMNS: tuple[str, ...] = (
    "navigationStart",
    "redirectStart",
    "redirectEnd",
    "fetchStart",
    "domainLookupStart",
    "domainLookupEnd",
    "connectStart",
    "connectEnd",
    "secureConnectionStart",
    "requestStart",
    "responseStart",
    "responseEnd",
    "domLoading",
    "domInteractive",
    "domContentLoadedEventStart",
    "domContentLoadedEventEnd",
    "domComplete",
    "loadEventStart",
    "loadEventEnd",
    "unloadEventStart",
    "unloadEventEnd",
)
EVENT_COLUMNS: tuple[str, ...] = tuple(c for c in TIMING_COLUMNS if c != REFERENCE_COLUMN)
EXPECTED_COLUMNS: tuple[str, ...] = ID_COLUMNS + TIMING_COLUMNS

# order in which the browser fires the events during one navigation
CHRONOLOGICAL_ORDER: tuple[str, ...] = (
    "navigationStart",
    "unloadEventStart",
    "unloadEventEnd",
    "redirectStart",
    "redirectEnd",
    "fetchStart",
    "domainLookupStart",
    "domainLookupEnd",
    "connectStart",
    "secureConnectionStart",
    "connectEnd",
    "requestStart",
    "responseStart",
    "responseEnd",
    "domLoading",
    "domInteractive",
    "domContentLoadedEventStart",
    "domContentLoadedEventEnd",
    "domComplete",
    "loadEventStart",
    "loadEventEnd",
)

BROWSER_LABELS: dict[str, str] = {
    "chrome_normal":   "Chrome",
    "chrome_private":  "Chrome Incognito",
    "firefox_normal":  "Firefox Quantum",
    "firefox_private": "Firefox Quantum Private Browsing",
}
BROWSER_ORDER: tuple[str, ...] = tuple(BROWSER_LABELS.values())

OFFSET_SUFFIX = "_offset"


def missing_columns(columns: Iterable[str]) -> list[str]:
    """Expected column names absent from ``columns``, in schema order."""
    present = {str(c).strip() for c in columns}
    return [c for c in EXPECTED_COLUMNS if c not in present]


def browser_sort_key(label: str) -> tuple[int, str]:
    # known configurations first, in mapping order; anything else alphabetically after
    try:
        return (BROWSER_ORDER.index(label), "")
    except ValueError:
        return (len(BROWSER_ORDER), str(label))


def resolve_event_order(value) -> tuple[str, ...]:
    if value is None:
        return CHRONOLOGICAL_ORDER
    if isinstance(value, (list, tuple)):
        order = tuple(str(v).strip() for v in value if str(v).strip())
        if order:
            return order
    return CHRONOLOGICAL_ORDER
