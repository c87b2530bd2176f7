# pageload_report/main.py
from __future__ import annotations
from pathlib import Path
import argparse
import logging
import sys
import yaml

from .loaders import csv_loader
from .utils.detect import resolve_input
from .core.pipeline import run_pipeline

HERE = Path(__file__).resolve().parent

def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}

def configure_logging(cfg: dict) -> None:
    level_name = str((cfg.get("logging") or {}).get("level", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render the browser page-load study report.")
    parser.add_argument("--config", type=Path, default=HERE / "config.yaml",
                        help="YAML configuration (default: config.yaml next to this module)")
    parser.add_argument("--input", type=Path, default=None,
                        help="study CSV/ZIP or a folder holding pageloadstudy.csv (overrides input.path)")
    parser.add_argument("--output", type=Path, default=None,
                        help="output folder (overrides output.root)")
    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_args(argv)

    # ---------- config ----------
    cfg = load_config(args.config)
    configure_logging(cfg)

    in_cfg = cfg.get("input", {}) or {}
    in_path = (args.input or Path(in_cfg.get("path", "pageloadstudy.csv"))).resolve()
    out_root = (args.output or Path((cfg.get("output", {}) or {}).get("root", "report_out"))).resolve()

    verbose = bool((cfg.get("logging") or {}).get("verbose", True))
    if verbose:
        print(f"[cfg] input={in_path}")
        print(f"[cfg] output={out_root}")

    # ---------- load ----------
    try:
        item = resolve_input(in_path, str(in_cfg.get("file_name", "pageloadstudy.csv")))
        if verbose:
            print(f"  [load] {item.kind:6} {item.path.name}")
        study = csv_loader.load(item.path, cfg)
    except (OSError, ValueError) as e:
        print(f"[ERROR] cannot read study input: {e}")
        return 1

    if verbose:
        print(f"[pipeline] {study.name}: processing {len(study.frame)} record(s)")

    # ---------- report ----------
    html_path = run_pipeline(study, cfg, out_root)

    if verbose:
        print(f"[summary] finished {study.name} → {html_path}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
