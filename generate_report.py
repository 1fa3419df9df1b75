#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Report Generation - Standalone Entry Point

Turns a Word template (value table + section table + fenced sections) into a
client report: disqualified sections removed, charts inserted, values
substituted, scaffolding stripped.

Usage:
    # Write <template>_report_<timestamp>.docx next to the template
    python generate_report.py template.docx

    # Custom output location
    python generate_report.py template.docx --output reports/client.docx

    # Alternative config file and overrides
    python generate_report.py template.docx --config my.yaml --set charts.enabled=false

    # Run the pipeline and print the summary without saving
    python generate_report.py template.docx --dry-run -v
"""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# ============================================================================
# SETUP
# ============================================================================
REPO = Path(__file__).resolve().parent
sys.path.insert(0, str(REPO))

from core.config import get_config, get_config_overrides, get_config_source, get_section
from core.runtime import default_output_path
from templating.core.errors import TemplateError
from templating.report_assembler import assemble_report, summarize_run

DEFAULT_LOG_FORMAT = "[%(levelname)s] %(message)s"


# ============================================================================
# MAIN LOGIC
# ============================================================================
def setup_logging(cfg: dict, verbose: bool = False) -> None:
    log_cfg = get_section(cfg, "logging")
    level_name = "DEBUG" if verbose else str(log_cfg.get("level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO),
                        format=log_cfg.get("format") or DEFAULT_LOG_FORMAT)


def generate_report(input_path: Path,
                    output_path: Path | None,
                    cfg: dict,
                    dry_run: bool = False,
                    verbose: bool = False) -> int:
    """
    Generate one report.

    Args:
        input_path: Template .docx
        output_path: Report .docx (ignored on dry run)
        cfg: Resolved configuration
        dry_run: Run the pipeline without saving
        verbose: Print tracebacks on failure

    Returns:
        Exit code (0 = success, 1 = error)
    """
    logger = logging.getLogger(__name__)

    print()
    print("=" * 80)
    print("  REPORT GENERATION")
    print("=" * 80)
    print(f"  Template:     {input_path}")
    print(f"  Output:       {'(dry run)' if dry_run else output_path}")
    print(f"  Config:       {get_config_source()}")
    print(f"  Timestamp:    {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 80)
    print()

    overrides = get_config_overrides()
    if overrides:
        logger.debug("Config overrides: %s", overrides)

    try:
        summary = assemble_report(input_path, None if dry_run else output_path, cfg)
    except TemplateError as e:
        logger.error("[FAIL] Report generation failed: %s", e)
        if verbose:
            import traceback
            traceback.print_exc()
        return 1

    print()
    print(summarize_run(summary))
    print()
    if not dry_run:
        size_kb = output_path.stat().st_size / 1024
        print("=" * 80)
        print("  [OK] GENERATION COMPLETE")
        print("=" * 80)
        print(f"  Output file:  {output_path}")
        print(f"  File size:    {size_kb:.1f} KB")
        print("=" * 80)
        print()
    return 0


# ============================================================================
# COMMAND LINE INTERFACE
# ============================================================================
def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Generate a client report from a Word template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python generate_report.py template.docx
  python generate_report.py template.docx -o reports/client.docx
  python generate_report.py template.docx --set charts.export_dir=charts
  python generate_report.py template.docx --dry-run -v
        """
    )

    parser.add_argument(
        "input",
        help="Template .docx",
        type=Path,
    )

    parser.add_argument(
        "--output", "-o",
        help="Output .docx path (default: <template>_report_<timestamp>.docx)",
        type=Path,
        default=None,
        metavar="PATH"
    )

    parser.add_argument(
        "--config",
        help="Alternative YAML config (default: config/defaults.yaml)",
        default=None,
        metavar="PATH"
    )

    parser.add_argument(
        "--set",
        help="Dotted config override, e.g. charts.dpi=200 (repeatable)",
        action="append",
        default=[],
        metavar="KEY=VALUE"
    )

    parser.add_argument(
        "--verbose", "-v",
        help="Enable verbose logging (DEBUG level)",
        action="store_true"
    )

    parser.add_argument(
        "--dry-run",
        help="Run the pipeline and print the summary without saving",
        action="store_true"
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    config_args = []
    if args.config:
        config_args += ["--config", args.config]
    for item in args.set:
        config_args += ["--set", item]

    try:
        cfg = get_config(cli_args=config_args)
    except (FileNotFoundError, TypeError, ValueError) as e:
        logging.basicConfig(level=logging.INFO, format=DEFAULT_LOG_FORMAT)
        logging.getLogger(__name__).error("[FAIL] Cannot load config: %s", e)
        return 1

    setup_logging(cfg, verbose=args.verbose)

    output_path = args.output or default_output_path(args.input)
    return generate_report(args.input, output_path, cfg,
                           dry_run=args.dry_run, verbose=args.verbose)


if __name__ == "__main__":
    sys.exit(main())
