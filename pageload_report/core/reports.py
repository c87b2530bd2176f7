# pageload_report/core/reports.py
from __future__ import annotations
import base64
from dataclasses import dataclass
from datetime import datetime
from html import escape
from pathlib import Path
from typing import Literal, Sequence
import numpy as np
import pandas as pd
from scipy.io import savemat

ReportFormat = Literal["csv", "mat", "both"]

@dataclass(frozen=True)
class TableSection:
    heading: str
    table: pd.DataFrame
    note: str = ""
    index: bool = False

@dataclass(frozen=True)
class ChartSection:
    caption: str
    path: Path


def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str, index: bool = False) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=index, encoding="utf-8")
    print(f"[OK] wrote table: {title} → {out_csv}")

def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    seq2 = [("" if s is None else str(s)) for s in seq]
    arr = np.empty((len(seq2), 1), dtype=object)
    arr[:, 0] = seq2
    return arr

def _mat_field(name) -> str:
    # MATLAB field names: letters, digits, underscores; must start with a letter
    s = "".join(ch if ch.isalnum() else "_" for ch in str(name)).strip("_")
    return s if s[:1].isalpha() else f"f_{s}"

def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str) -> None:
    """
    Save a MATLAB struct with one field per column.
    Strings become cell arrays (Nx1), numerics become double (Nx1).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)
    mat_struct = {}
    for col in df_out.columns:
        s = df_out[col]
        if pd.api.types.is_numeric_dtype(s) and not pd.api.types.is_bool_dtype(s):
            mat_struct[_mat_field(col)] = s.to_numpy(dtype=float).reshape(-1, 1)
        else:
            mat_struct[_mat_field(col)] = _to_mat_cellstr(
                ["" if pd.isna(v) else str(v) for v in s.tolist()])
    savemat(out_mat, {varname: mat_struct}, long_field_names=True)
    print(f"[OK] wrote table: {title} → {out_mat}")

def write_table(df_out: pd.DataFrame,
                out_base: Path,
                title: str,
                fmt: ReportFormat = "csv",
                mat_variable: str = "report",
                index: bool = False) -> list[Path]:
    """
    Write one summary table in the requested format.
    - out_base is a *base path without extension* (e.g., .../load_time_summary)
    - fmt: "csv" | "mat" | "both"
    - mat_variable: MATLAB variable name of the struct
    """
    if fmt not in ("csv", "mat", "both"):
        raise ValueError(f"unknown report format '{fmt}' (expected csv, mat or both)")
    written: list[Path] = []
    if df_out is None or df_out.empty:
        print(f"[INFO] {title}: empty table; nothing written.")
        return written
    if fmt in ("csv", "both"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title, index=index)
        written.append(out_base.with_suffix(".csv"))
    if fmt in ("mat", "both"):
        df_mat = df_out.reset_index() if index else df_out
        _write_mat(df_mat, out_base.with_suffix(".mat"), mat_variable, title)
        written.append(out_base.with_suffix(".mat"))
    return written


def _image_src(path: Path, html_dir: Path, embed: bool) -> str:
    if embed:
        return "data:image/png;base64," + base64.b64encode(path.read_bytes()).decode("utf-8")
    try:
        return path.resolve().relative_to(html_dir.resolve()).as_posix()
    except ValueError:
        return path.resolve().as_uri()

def _fmt_cell(x) -> str:
    if isinstance(x, float):
        if np.isnan(x):
            return ""
        return f"{x:.4g}" if abs(x) < 1 else f"{x:,.1f}"
    return str(x)

def write_html_report(tables: Sequence[TableSection],
                      charts: Sequence[ChartSection],
                      out_path: Path,
                      title: str,
                      subtitle: str = "",
                      embed_images: bool = True) -> Path:
    """Assemble a standalone HTML page: tables first, then figures."""
    out_path.parent.mkdir(parents=True, exist_ok=True)
    generated = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    parts = [f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{escape(title)}</title>
    <style>
        body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; max-width: 1200px;
               margin: 0 auto; padding: 20px; background-color: #f5f5f5; }}
        h1 {{ color: #333; border-bottom: 2px solid #4a90a4; padding-bottom: 10px; }}
        h2 {{ color: #4a90a4; margin-top: 30px; }}
        .section {{ background: white; border-radius: 8px; padding: 20px; margin: 20px 0; }}
        table {{ border-collapse: collapse; font-size: 13px; }}
        th, td {{ border: 1px solid #ddd; padding: 4px 8px; text-align: right; }}
        th {{ background: #4a90a4; color: white; }}
        img {{ max-width: 100%; }}
        .note {{ color: #666; font-size: 13px; }}
    </style>
</head>
<body>
    <h1>{escape(title)}</h1>
    <p class="note">{escape(subtitle)} Generated {generated}.</p>
"""]

    for sec in tables:
        if sec.table is None or sec.table.empty:
            body = "<p class=\"note\">No data.</p>"
        else:
            body = sec.table.to_html(index=sec.index, float_format=_fmt_cell,
                                     na_rep="", classes="summary-table", border=0)
        note = f"<p class=\"note\">{escape(sec.note)}</p>" if sec.note else ""
        parts.append(f"""    <div class="section">
        <h2>{escape(sec.heading)}</h2>
        {note}
        {body}
    </div>
""")

    for ch in charts:
        src = _image_src(ch.path, out_path.parent, embed_images)
        parts.append(f"""    <div class="section">
        <h2>{escape(ch.caption)}</h2>
        <img src="{src}" alt="{escape(ch.caption)}">
    </div>
""")

    parts.append("</body>\n</html>\n")
    out_path.write_text("".join(parts), encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_path}")
    return out_path
