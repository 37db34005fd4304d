from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .config import MapConfig, load_config
from .logging_config import configure
from .pipeline import run_pipeline
from .site_io import load_sites, save_sites
from .sites import fetch_sites

log = logging.getLogger("nwis_map.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nwis_map",
        description="USGS site map with Alaska, Hawaii and Puerto Rico moved in",
    )
    parser.add_argument("--config", help="YAML/JSON config file")
    parser.add_argument("--log-level", default="INFO", help="DEBUG, INFO, WARNING …")
    sub = parser.add_subparsers(dest="command", required=True)

    p_init = sub.add_parser("init-config", help="Write the default config")
    p_init.add_argument("path", help="Target .yaml/.json file")

    p_fetch = sub.add_parser("fetch", help="Fetch long-record sites to CSV")
    p_fetch.add_argument("--states", nargs="+", help="Jurisdiction codes (default: all)")
    p_fetch.add_argument("--out", help="CSV path (default: <output_dir>/sites.csv)")

    p_plot = sub.add_parser("plot", help="Draw the map from a saved site CSV")
    p_plot.add_argument("--sites", required=True, help="Site CSV from `fetch`")
    p_plot.add_argument("--out", help="Image path (default: <output_dir>/site_map.png)")
    _style_flags(p_plot)

    p_run = sub.add_parser("run", help="Fetch sites and draw the map")
    p_run.add_argument("--out", help="Image path (default: <output_dir>/site_map.png)")
    _style_flags(p_run)
    return parser


def _style_flags(p: argparse.ArgumentParser) -> None:
    p.add_argument("--by-color", action="store_true", help="Colour sites by record length")
    p.add_argument("--by-size", action="store_true", help="Size sites by record length")


def _with_style(config: MapConfig, args: argparse.Namespace) -> MapConfig:
    if args.by_color or args.by_size:
        config.style = replace(
            config.style,
            scale_by_color=config.style.scale_by_color or args.by_color,
            scale_by_size=config.style.scale_by_size or args.by_size,
        )
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    configure(args.log_level)

    if args.command == "init-config":
        MapConfig().save_to_file(args.path)
        log.info("Default config → %s", args.path)
        return 0

    config = load_config(args.config)
    issues = config.validate()
    if issues:
        for issue in issues:
            log.error("Config: %s", issue)
        return 1

    if args.command == "fetch":
        jurisdictions = [s.upper() for s in args.states] if args.states else config.jurisdictions
        batch = fetch_sites(jurisdictions, config.sites)
        out = Path(args.out) if args.out else config.paths.output_dir / "sites.csv"
        save_sites(batch.sites, out)
        if batch.failures:
            log.warning("Failed: %s", ", ".join(batch.failures))
        return 0

    config = _with_style(config, args)
    sites = load_sites(args.sites) if args.command == "plot" else None
    result = run_pipeline(config, sites=sites, out_path=args.out)
    log.info("Map → %s", result.artefact)
    return 0


if __name__ == "__main__":
    sys.exit(main())
