"""Report output writer.

One JSON file per scan:
  out/<host>/<date>/<timestamp>.json
"""

import logging
from pathlib import Path
from typing import Optional

from sitehealth.util.types import Report
from sitehealth.util.io import write_json, ensure_dir
from sitehealth.util.time import timestamp_str, date_str
from sitehealth.scanner.normalization import extract_hostname

logger = logging.getLogger(__name__)


class ReportWriter:
    """Writes scan reports to disk as JSON."""

    def __init__(self, out_dir: Path = Path("out")):
        """Initialize writer with the base output directory."""
        self.out_dir = Path(out_dir)

    def report_path(self, report: Report) -> Path:
        host = extract_hostname(report.url) or "unknown"
        return self.out_dir / host / date_str(report.timestamp) / f"{timestamp_str(report.timestamp)}.json"

    def write(self, report: Report, path: Optional[Path] = None) -> Path:
        """Write the report and return where it went."""
        path = Path(path) if path else self.report_path(report)
        ensure_dir(path.parent)
        write_json(path, report.to_dict())
        logger.info(f"Report written to {path}")
        return path
