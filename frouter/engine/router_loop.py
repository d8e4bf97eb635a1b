"""RouterLoop - the single control loop that turns raw notifications into moves."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..errors import ConfigError, FileRouterError, SinkError
from ..models import ChangeKind, Configuration, ErrorKind, MoveRecord, RouterState
from ..reporting import ErrorReporter
from ..storage import MoveLog, ensure_directory, list_files
from ..watchers import (
    ChannelItem,
    RawNotification,
    ReconcileResult,
    WatchFailure,
    WatchSetManager,
    load_config,
)
from .accumulator import EventAccumulator
from .debounce import DebounceSet
from .router import FileRouter

logger = logging.getLogger(__name__)


class RouterLoop:
    """
    Consumes the notification channel and routes settled files.

    The loop owns the debounce set, the accumulator and the watch set; the
    watch backend only ever puts items on the queue, so nothing here needs
    a lock. Each iteration handles at most one item, waiting no longer than
    `tick` seconds for it, then checks whether the pending batch has been
    quiet for `delay` seconds. A batch is routed under one move log
    transaction.

    States:
        IDLE -> ACCUMULATING when the first path is accepted
        ACCUMULATING -> IDLE when the batch is drained
        any -> STOPPED when the channel closes or stop() is called

    Usage:
        loop = RouterLoop(
            config_path=config_path,
            queue=backend.queue,
            watch_set=WatchSetManager(backend),
            move_log=MoveLog(database),
            reporter=ErrorReporter(),
        )
        await loop.apply_config(load_config(config_path))
        await loop.run()
    """

    def __init__(
        self,
        config_path: Path,
        queue: "asyncio.Queue[ChannelItem]",
        watch_set: WatchSetManager,
        move_log: MoveLog,
        reporter: ErrorReporter,
        debounce: Optional[DebounceSet] = None,
        accumulator: Optional[EventAccumulator] = None,
        router: Optional[FileRouter] = None,
        config: Optional[Configuration] = None,
        config_loader: Callable[[Path], Configuration] = load_config,
        delay: float = 10.0,
        tick: float = 0.5,
    ):
        self.config_path = Path(config_path)
        self.queue = queue
        self.watch_set = watch_set
        self.move_log = move_log
        self.reporter = reporter
        self.debounce = debounce or DebounceSet()
        self.accumulator = accumulator or EventAccumulator()
        self.router = router or FileRouter()
        self.config = config
        self.config_loader = config_loader
        self.delay = delay
        self.tick = tick

        self._config_resolved = _resolve(self.config_path)
        self._running = False
        self._stopped = False

        # Counters
        self.batches_flushed = 0
        self.files_routed = 0
        self.reloads = 0

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> RouterState:
        if self._stopped:
            return RouterState.STOPPED
        if self.accumulator:
            return RouterState.ACCUMULATING
        return RouterState.IDLE

    @property
    def is_running(self) -> bool:
        return self._running

    def stats(self) -> dict:
        """Snapshot of loop counters."""
        return {
            "state": self.state.value,
            "pending": len(self.accumulator),
            "recently_processed": len(self.debounce),
            "batches_flushed": self.batches_flushed,
            "files_routed": self.files_routed,
            "reloads": self.reloads,
        }

    # -------------------------------------------------------------------------
    # Main loop
    # -------------------------------------------------------------------------

    async def run(self) -> None:
        """Run until stop() is called or the channel is closed."""
        if self.config is None:
            raise RuntimeError("No configuration applied. Call apply_config() first.")

        self._running = True
        self._stopped = False
        logger.info(f"Router loop started (delay={self.delay}s, tick={self.tick}s)")

        try:
            while self._running:
                try:
                    item = await asyncio.wait_for(self.queue.get(), timeout=self.tick)
                except asyncio.TimeoutError:
                    pass
                else:
                    if item is None:
                        logger.warning("Notification channel closed")
                        break
                    await self.handle(item)

                await self.flush_if_ready()
        finally:
            self._running = False
            self._stopped = True
            if self.accumulator:
                logger.info(
                    f"Router loop stopped with {len(self.accumulator)} pending paths; "
                    f"they stay in place until the next startup scan"
                )
            else:
                logger.info("Router loop stopped")

    def stop(self) -> None:
        """Ask the loop to exit after its current iteration."""
        self._running = False

    async def handle(self, item: RawNotification | WatchFailure) -> None:
        """Dispatch one channel item."""
        if isinstance(item, WatchFailure):
            self.reporter.report(ErrorKind.WATCH, f"Watch failure for {item.path}: {item.message}")
            return

        path = item.path
        if self._is_config_path(path):
            # Editors that save by replace emit a delete before the new file appears.
            if item.kind != ChangeKind.DELETED:
                await self.reload()
            return

        if item.kind == ChangeKind.DELETED:
            return
        if not self.watch_set.covers(path):
            logger.debug(f"Ignoring notification outside watched directories: {path}")
            return
        if self.config.is_ignored(path):
            logger.debug(f"Ignoring {path.name} (ignore pattern)")
            return

        if self.debounce.accept(path):
            self.accumulator.add(path)
            logger.debug(f"Accepted {item.kind.value} {path} ({len(self.accumulator)} pending)")

    async def flush_if_ready(self) -> list[MoveRecord]:
        """Route the pending batch once it has been quiet for `delay` seconds."""
        if not self.accumulator.ready(self.delay):
            return []
        paths = self.accumulator.drain_all()
        logger.info(f"Flushing batch of {len(paths)} paths")
        return await self.route_batch(paths)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    async def reload(self) -> bool:
        """
        Reload the configuration file and reconcile the watch set.

        On a malformed file the error is reported and the previous
        configuration and watch set stay in force.

        Returns:
            True if the new configuration was applied
        """
        logger.info("Config file changed. Reloading...")
        try:
            new_config = self.config_loader(self.config_path)
        except ConfigError as e:
            self.reporter.report_exception(e)
            return False

        await self.apply_config(new_config)
        self.reloads += 1
        logger.info("Config reloaded successfully")
        return True

    async def apply_config(self, new_config: Configuration) -> ReconcileResult:
        """
        Make new_config the live configuration.

        Creates missing directories, reconciles the watch set against the
        new configuration, then routes files already sitting in the source
        directories.
        """
        await self._ensure_directories(new_config)

        result = self.watch_set.reconcile(self.config, new_config)
        for error in result.errors:
            self.reporter.report_exception(error)

        self.config = new_config
        await self.route_existing()
        return result

    async def route_existing(self) -> list[MoveRecord]:
        """Route files already present in the configured source directories."""
        paths: list[Path] = []
        for name, directory in self.config.directories.items():
            try:
                paths.extend(await list_files(directory))
            except OSError as e:
                logger.warning(f"Failed to read directory {name} ({directory}): {e}")

        paths = [p for p in paths if not self.config.is_ignored(p)]
        if not paths:
            return []
        logger.info(f"Routing {len(paths)} existing files")
        return await self.route_batch(paths)

    async def _ensure_directories(self, config: Configuration) -> None:
        for directory in sorted(config.watch_paths()):
            try:
                await ensure_directory(directory)
            except PermissionError:
                self.reporter.report(
                    ErrorKind.DIRECTORY,
                    f"Permission denied when trying to ensure {directory} directory exists.",
                )
            except OSError as e:
                self.reporter.report(
                    ErrorKind.DIRECTORY,
                    f"Failed to ensure {directory} directory exists. Error: {e}",
                )

    # -------------------------------------------------------------------------
    # Routing
    # -------------------------------------------------------------------------

    async def route_batch(self, paths: list[Path]) -> list[MoveRecord]:
        """
        Route paths in order under a single move log transaction.

        Per-path failures are reported and skip only that path. The
        transaction is opened on the first completed move, so a batch that
        moves nothing never touches the log. Logging is at-most-once: if the
        transaction cannot be opened, appended to or committed, the error is
        reported, the moves that already happened stay done and their
        entries are lost.
        """
        routed: list[MoveRecord] = []
        in_transaction = False
        logging_failed = False

        for path in paths:
            try:
                record = await self.router.route(path, self.config)
            except FileRouterError as e:
                self.reporter.report_exception(e)
                continue
            if record is None:
                continue

            routed.append(record)
            if logging_failed:
                continue
            try:
                if not in_transaction:
                    await self.move_log.begin()
                    in_transaction = True
                await self.move_log.append(record)
            except SinkError as e:
                self.reporter.report_exception(e)
                await self._rollback()
                in_transaction = False
                logging_failed = True

        if in_transaction:
            try:
                await self.move_log.commit()
            except SinkError as e:
                unlogged = ", ".join(r.destination_path for r in routed)
                self.reporter.report(ErrorKind.SINK, f"{e.message}; unlogged moves: {unlogged}")
                await self._rollback()

        if routed:
            self.batches_flushed += 1
            self.files_routed += len(routed)
        return routed

    async def _rollback(self) -> None:
        try:
            await self.move_log.rollback()
        except SinkError as e:
            logger.warning(f"Rollback after failed batch also failed: {e}")

    def _is_config_path(self, path: Path) -> bool:
        if path == self.config_path:
            return True
        return path.name == self.config_path.name and _resolve(path) == self._config_resolved


def _resolve(path: Path) -> Path:
    try:
        return path.resolve()
    except OSError:
        return path
