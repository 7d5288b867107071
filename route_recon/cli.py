from __future__ import annotations

import argparse
import json
import os
import sys
from typing import List, Optional

from .auditor import audit
from .common import PrintLogger
from .config import load_config
from .loaders import ToolSet, load_inputs
from .render import DEFAULT_WIDTH, print_report, user_facing_message


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="route-recon")
    parser.add_argument("--config", required=True, help="Path to the audit configuration file")
    parser.add_argument("--subject", help="Override audit.subject for this run", default=None)
    parser.add_argument(
        "--output-json",
        help="Optional path to write the integrity report as JSON",
        default=None,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help=f"Width of the printed report panel (default: runtime.report_width or {DEFAULT_WIDTH})",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the report panel",
        default=False,
    )
    parser.add_argument(
        "--fail-on-inconsistent",
        action="store_true",
        help="Exit with non-zero code if the report is not consistent",
        default=False,
    )
    return parser.parse_args(argv)


def run_cli(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    cfg = load_config(args.config)
    runtime = cfg.get("runtime", {})
    if args.subject:
        cfg["audit"]["subject"] = args.subject
    logger = PrintLogger(
        job_name=runtime.get("job_name", "route_recon"),
        file_path=runtime.get("log_file"),
        stream=sys.stderr,
        level=runtime.get("log_level", "INFO"),
    )
    tools = ToolSet(cfg)
    try:
        inputs = load_inputs(
            cfg,
            tools,
            base_dir=os.path.dirname(os.path.abspath(args.config)),
            logger=logger,
        )
    finally:
        tools.stop()
    report = audit(
        inputs.subject_name,
        inputs.records,
        inputs.routes,
        loaded_records=inputs.loaded_records,
        logger=logger,
    )
    if not args.quiet:
        print_report(report, width=args.width or runtime.get("report_width", DEFAULT_WIDTH))
    message = user_facing_message(report)
    if message:
        print(message)
    if args.output_json:
        with open(args.output_json, "w", encoding="utf-8") as handle:
            json.dump(report.to_dict(), handle, indent=2, sort_keys=True)
    if args.fail_on_inconsistent and not report.is_consistent:
        raise SystemExit(2)


__all__ = ["parse_args", "run_cli"]
