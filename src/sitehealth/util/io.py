"""Safe file I/O utilities.

Helper functions for writing files with proper error handling.
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def ensure_dir(path: Path) -> Path:
    """Ensure directory exists, create if needed. Returns the path."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def write_json(path: Path, data: Any, indent: int = 2) -> None:
    """Write data to JSON file safely."""
    path = Path(path)
    ensure_dir(path.parent)

    try:
        with open(path, 'w') as f:
            json.dump(data, f, indent=indent, default=str)
        logger.debug(f"Wrote JSON to {path}")
    except Exception as e:
        logger.error(f"Failed to write JSON to {path}: {e}")
        raise

