from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""JSON Lines error log for failed commands.

The file ``<log_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC, process start) is
created on the first failure only; each failure is appended immediately so
a long-running ``serve`` process never holds unwritten records.
"""

__all__ = [
    "ErrorLog",
    "ErrorRecord",
]

logger = logging.getLogger(__name__)

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLog:
    def __init__(self, log_dir: Path | str = "logs") -> None:
        self.log_dir = Path(log_dir)
        self.path = self.log_dir / f"errors-{datetime.now(UTC).strftime(TIMESTAMP_FMT)}.log"
        self.written = 0

    def write(self, record: ErrorRecord) -> Path:
        """Append ``record`` as one JSON line; returns the log file path.

        Raises:
            OSError: the directory or file cannot be written
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.to_json_line() + "\n")
        self.written += 1
        logger.debug("error record appended to %s", self.path)
        return self.path
