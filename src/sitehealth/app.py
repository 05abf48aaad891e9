"""Command-line entry point.

    sitehealth example.com
    sitehealth https://example.com --json
    sitehealth example.com --out reports --log-level DEBUG

Settings (API key, timeouts, output dir) come from .env - see Config.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from sitehealth import __version__
from sitehealth.util.config import Config
from sitehealth.util.log import setup_logging
from sitehealth.util.types import CheckStatus, Report
from sitehealth.scanner.errors import AggregationError, InvalidTargetError
from sitehealth.scanner.output.writer import ReportWriter
from sitehealth.scanner.runner import SiteScanner

logger = logging.getLogger(__name__)

STATUS_MARKS = {
    CheckStatus.PASS: "✓",
    CheckStatus.WARN: "!",
    CheckStatus.FAIL: "✗",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sitehealth",
        description="Scan a website's health: TLS, DNS, speed, availability and mail setup.",
    )
    parser.add_argument("url", help="Target URL or bare hostname (https:// is assumed)")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    parser.add_argument("--out", type=Path, default=None, help="Output directory (overrides OUT_DIR)")
    parser.add_argument("--no-save", action="store_true", help="Don't write the report to disk")
    parser.add_argument("--log-level", default=None, help="Logging level (overrides LOG_LEVEL)")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def format_summary(report: Report) -> str:
    """Human-readable report summary."""
    lines = [
        "=" * 60,
        f"Website health: {report.url}",
        f"Score: {report.overall_score}/100 - {report.score_level}",
        "=" * 60,
    ]
    for name, verdict in report.checks.items():
        mark = STATUS_MARKS[verdict.status]
        lines.append(f"  {mark} {name:<16} {verdict.score:>3}  {verdict.message}")

    if report.critical_issues:
        lines.append("")
        lines.append("Critical issues:")
        lines.extend(f"  - {issue}" for issue in report.critical_issues)

    lines.append("")
    lines.append("Recommendations:")
    lines.extend(f"  {i}. {rec}" for i, rec in enumerate(report.recommendations, 1))
    return "\n".join(lines)


async def run_scan(url: str, config: Config) -> Report:
    async with SiteScanner(config) as scanner:
        return await scanner.scan(url)


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = Config()
    except ValueError as e:
        print(f"\n✗ Configuration error: {e}", file=sys.stderr)
        return 1

    if args.out is not None:
        config.out_dir = args.out
    setup_logging(log_file=args.log_file, level=args.log_level or config.log_level)
    logger.debug(f"Loaded {config!r}")

    try:
        report = asyncio.run(run_scan(args.url, config))

    except InvalidTargetError as e:
        print(json.dumps({'error': str(e), 'status': 400}) if args.json else f"\n✗ Invalid target: {e}")
        return 2

    except AggregationError as e:
        print(json.dumps({'error': str(e), 'status': 500}) if args.json else f"\n✗ {e}")
        return 1

    except KeyboardInterrupt:
        print("\n\n✗ Scan interrupted by user", file=sys.stderr)
        return 130

    except Exception as e:
        logging.error(f"Unexpected error: {e}", exc_info=True)
        print(json.dumps({'error': 'Internal server error during scan', 'status': 500})
              if args.json else f"\n✗ Unexpected error: {e}")
        return 1

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(format_summary(report))

    if not args.no_save:
        path = ReportWriter(config.out_dir).write(report)
        if not args.json:
            print(f"\nReport saved to {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
