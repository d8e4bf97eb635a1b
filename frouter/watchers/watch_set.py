"""Live set of watched directories, reconciled against each configuration."""

import logging
from pathlib import Path
from typing import NamedTuple, Optional

from ..errors import WatchError
from ..models import Configuration
from .backend import WatchBackend, WatchHandle

logger = logging.getLogger(__name__)


class ReconcileResult(NamedTuple):
    """Outcome of one reconciliation."""
    unwatched: set[Path]
    watched: set[Path]
    errors: list[WatchError]


class WatchSetManager:
    """
    Owns the mapping of watched directories to watch handles.

    The mapping is changed only by reconcile() and unwatch_all(). Failures
    are collected rather than raised, so one bad directory never prevents
    the others from being watched. A directory that failed to watch is
    simply absent and is retried by the next reconcile.
    """

    def __init__(self, backend: WatchBackend):
        self.backend = backend
        self._handles: dict[Path, WatchHandle] = {}
        self._resolved: dict[Path, Path] = {}

    @property
    def watched(self) -> set[Path]:
        """Snapshot of the currently watched directories."""
        return set(self._handles)

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def covers(self, file_path: Path) -> bool:
        """Whether a file lives directly inside a watched directory."""
        parent = Path(file_path).parent
        if parent in self._handles:
            return True
        return _resolve(parent) in self._resolved

    def reconcile(
        self,
        old_config: Optional[Configuration],
        new_config: Configuration,
    ) -> ReconcileResult:
        """
        Bring the watched set in line with new_config.

        Args:
            old_config: The configuration being replaced (None at startup)
            new_config: The configuration to watch from now on

        Returns:
            ReconcileResult of (unwatched, watched, errors)
        """
        required = new_config.watch_paths()
        unwatched: set[Path] = set()
        watched: set[Path] = set()
        errors: list[WatchError] = []

        for path in sorted(set(self._handles) - required):
            handle = self._handles.pop(path)
            self._resolved.pop(_resolve(path), None)
            try:
                self.backend.unwatch(handle)
                unwatched.add(path)
                logger.info(f"Unwatched directory {path}")
            except WatchError as e:
                logger.warning(f"Failed to unwatch directory {path}: {e.reason}")
                errors.append(e)

        for path in sorted(required - set(self._handles)):
            try:
                handle = self.backend.watch(path)
            except WatchError as e:
                logger.warning(f"Failed to watch directory {path}: {e.reason}")
                errors.append(e)
                continue
            self._handles[path] = handle
            self._resolved[_resolve(path)] = path
            watched.add(path)
            logger.info(f"Watching directory {path}")

        if old_config is not None:
            dropped = old_config.watch_paths() - required
            if dropped:
                logger.debug(f"Directories no longer configured: {sorted(map(str, dropped))}")

        return ReconcileResult(unwatched=unwatched, watched=watched, errors=errors)

    def unwatch_all(self) -> list[WatchError]:
        """Stop watching everything (used at shutdown)."""
        errors = []
        for handle in list(self._handles.values()):
            try:
                self.backend.unwatch(handle)
            except WatchError as e:
                errors.append(e)
        self._handles.clear()
        self._resolved.clear()
        return errors


def _resolve(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path
