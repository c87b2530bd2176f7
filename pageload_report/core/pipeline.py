# pageload_report/core/pipeline.py
from __future__ import annotations
import logging
from pathlib import Path

from .classify import prepare_bounce, classify_loads, bounce_counts, fast_slow_ratio
from .metrics import (
    event_summary,
    load_time_summary,
    chronological_means,
    fastest_browser_counts,
    compare_browsers,
)
from .model import StudyData
from .normalize import normalize_timings, to_tidy
from .plotting import (
    save_chronological_plot,
    save_load_time_boxplot,
    save_bounce_plot,
    save_event_means_plot,
)
from .reports import ChartSection, TableSection, write_table, write_html_report
from .schema import EVENT_COLUMNS, resolve_event_order

_LOG = logging.getLogger(__name__)


def run_pipeline(study: StudyData, cfg: dict, out_root: Path) -> Path:
    """Normalize, aggregate, classify, chart and report one study; returns the HTML path."""
    cfg = cfg or {}
    rep_cfg = cfg.get("reports", {}) or {}
    chart_cfg = cfg.get("charts", {}) or {}
    fmt = str(rep_cfg.get("format", "csv")).lower()
    mat_var = str(rep_cfg.get("mat_variable", "report"))
    embed = bool(rep_cfg.get("embed_images", True))
    html_name = str(rep_cfg.get("html_name", "report.html"))
    dpi = int(chart_cfg.get("dpi", 160))
    event_order = resolve_event_order(chart_cfg.get("event_order"))
    baseline = str((cfg.get("comparison", {}) or {}).get("baseline", "Chrome"))
    bcfg = prepare_bounce(cfg)

    out_root.mkdir(parents=True, exist_ok=True)
    tables_dir = out_root / "tables"
    charts_dir = out_root / "charts"

    # derive
    derived = normalize_timings(study.frame)
    tidy = to_tidy(derived, event_order)
    _LOG.info("%s: %d record(s), %d valid offset(s) across %d event column(s)",
              study.name, len(derived), len(tidy), sum(c in EVENT_COLUMNS for c in derived.columns))

    # aggregate
    ev_summary = event_summary(tidy, event_order)
    lt_summary = load_time_summary(derived, bcfg.event)
    means = chronological_means(tidy, event_order)
    fastest = fastest_browser_counts(derived, bcfg.event)
    comparison = compare_browsers(derived, baseline=baseline, event=bcfg.event)

    classified = classify_loads(derived, bcfg)
    counts = bounce_counts(classified, bcfg)
    ratio = fast_slow_ratio(classified, bcfg)

    # tables
    write_table(lt_summary, tables_dir / "load_time_summary", f"{study.name} load time", fmt, mat_var)
    write_table(ev_summary, tables_dir / "event_summary", f"{study.name} events", fmt, mat_var)
    write_table(means, tables_dir / "chronological_means", f"{study.name} chronological means",
                fmt, mat_var, index=True)
    write_table(ratio, tables_dir / "bounce_ratio", f"{study.name} bounce ratio", fmt, mat_var)
    write_table(fastest, tables_dir / "fastest_browser", f"{study.name} fastest browser", fmt, mat_var)
    write_table(comparison, tables_dir / "browser_comparison", f"{study.name} browser comparison",
                fmt, mat_var)

    # charts
    chart_specs = [
        ("Mean event offsets in chronological order",
         save_chronological_plot(means, charts_dir / "chronological_offsets.png", study.name, dpi)),
        (f"{bcfg.event} distribution per browser",
         save_load_time_boxplot(derived, bcfg.event, charts_dir / "load_time_boxplot.png",
                                study.name, dpi, threshold_ms=bcfg.threshold_ms)),
        ("Bounce-rate threshold classification",
         save_bounce_plot(counts, bcfg, charts_dir / "bounce_classification.png", study.name, dpi)),
        ("Mean offset per event",
         save_event_means_plot(means, charts_dir / "event_means.png", study.name, dpi)),
    ]
    charts = [ChartSection(caption, path) for caption, path in chart_specs if path is not None]

    ratio_note = (f"Counts divided by the fixed study size of {bcfg.normalization_constant} "
                  f"loads per browser; the shares assume the input holds exactly that many.")
    sections = [
        TableSection(f"{bcfg.event} per browser [ms]", lt_summary),
        TableSection(f"Bounce classification ({bcfg.threshold_ms:g} ms)", ratio, note=ratio_note),
        TableSection("Fastest browser per page", fastest,
                     note=f"Browser with the lowest median {bcfg.event} for each page."),
        TableSection(f"Mann-Whitney U vs {baseline}", comparison),
        TableSection("Mean offsets by event [ms]", means, index=True),
        TableSection("Event offset statistics [ms]", ev_summary),
    ]
    subtitle = (f"{len(derived)} page loads from {study.source_path.name}; "
                f"offsets relative to navigationStart.")
    return write_html_report(sections, charts, out_root / html_name,
                             f"Page load study: {study.name}", subtitle=subtitle, embed_images=embed)
