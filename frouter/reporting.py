"""Error reporting channel: every error gets a kind label and a message."""

import json
import logging
from collections import deque
from pathlib import Path
from typing import Optional

from .errors import FileRouterError
from .models import ErrorKind, ErrorRecord

logger = logging.getLogger(__name__)


class ErrorReporter:
    """
    Collects reported errors.

    Each report is logged at ERROR level, kept in a bounded in-memory
    history for the status API and, when error_log_path is set, appended
    to that file as one JSON object per line.
    """

    def __init__(self, error_log_path: Optional[Path] = None, history_size: int = 200):
        self.error_log_path = error_log_path
        self._history: deque[ErrorRecord] = deque(maxlen=history_size)

    def report(self, kind: ErrorKind, message: str) -> ErrorRecord:
        """Report an error under a kind label."""
        record = ErrorRecord(kind=kind, message=message)
        self._history.append(record)
        logger.error(f"[{record.kind}] {message}")
        if self.error_log_path is not None:
            self._append_to_file(record)
        return record

    def report_exception(self, error: FileRouterError) -> ErrorRecord:
        """Report a FileRouterError using its own kind."""
        return self.report(error.kind, error.message)

    def recent(self, limit: int = 50) -> list[ErrorRecord]:
        """Most recent errors first."""
        return list(reversed(self._history))[:limit]

    def __len__(self) -> int:
        return len(self._history)

    def _append_to_file(self, record: ErrorRecord) -> None:
        line = json.dumps({
            "timestamp": record.timestamp,
            "error_type": record.kind,
            "message": record.message,
        })
        try:
            self.error_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.error_log_path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as e:
            logger.warning(f"Failed to write error log {self.error_log_path}: {e}")
