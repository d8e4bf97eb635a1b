"""Pipeline - builds the router components once and runs them."""

import asyncio
import logging
from typing import Optional

from ..errors import WatchError
from ..models import ChangeKind, ErrorKind
from ..reporting import ErrorReporter
from ..settings import Settings
from ..storage import Database, MoveLog
from ..watchers import (
    RawNotification,
    WatchBackend,
    WatchfilesBackend,
    WatchHandle,
    WatchSetManager,
    ensure_config_exists,
    load_config,
)
from .accumulator import EventAccumulator
from .debounce import DebounceSet
from .router import FileRouter
from .router_loop import RouterLoop

logger = logging.getLogger(__name__)


class Pipeline:
    """
    Main orchestrator for frouter.

    Owns every component for the lifetime of the process: database, move
    log, watch backend, watch set and router loop. Nothing is kept in
    module-level state.

    Usage:
        pipeline = Pipeline(Settings.from_env())
        await pipeline.start()
        ...
        await pipeline.stop()

    or simply `await pipeline.run_forever()`.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        backend: Optional[WatchBackend] = None,
    ):
        self.settings = settings or Settings.from_env()
        self.backend = backend
        self.database = Database(self.settings.db_path)
        self.reporter = ErrorReporter(self.settings.error_log_path)
        self.move_log: Optional[MoveLog] = None
        self.watch_set: Optional[WatchSetManager] = None
        self.loop: Optional[RouterLoop] = None

        self._config_handle: Optional[WatchHandle] = None
        self._loop_task: Optional[asyncio.Task] = None
        self._running = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Start routing.

        Raises:
            ConfigError: If the configuration cannot be loaded at startup
        """
        if self._running:
            logger.warning("Pipeline already running")
            return

        logger.info("Starting pipeline...")
        settings = self.settings

        ensure_config_exists(settings.config_path)
        config = load_config(settings.config_path)

        await self.database.connect()
        self.move_log = MoveLog(self.database)

        if self.backend is None:
            self.backend = WatchfilesBackend()
        self.watch_set = WatchSetManager(self.backend)

        self.loop = RouterLoop(
            config_path=settings.config_path,
            queue=self.backend.queue,
            watch_set=self.watch_set,
            move_log=self.move_log,
            reporter=self.reporter,
            debounce=DebounceSet(window=settings.debounce_seconds),
            accumulator=EventAccumulator(),
            router=FileRouter(),
            delay=settings.delay_seconds,
            tick=settings.tick_seconds,
        )

        self._watch_config_file()
        result = await self.loop.apply_config(config)
        logger.info(
            f"Watching {len(self.watch_set)} directories "
            f"({len(result.errors)} failed)"
        )

        self._loop_task = asyncio.create_task(self.loop.run(), name="router-loop")
        self._running = True
        logger.info("Pipeline started")

    async def stop(self) -> None:
        """Stop the loop, release every watch and close the database."""
        if not self._running:
            return

        logger.info("Stopping pipeline...")
        self._running = False

        self.loop.stop()
        self.backend.close()
        task, self._loop_task = self._loop_task, None
        if task is not None and not task.done():
            await task

        for error in self.watch_set.unwatch_all():
            logger.warning(f"Error while unwatching at shutdown: {error}")
        if self._config_handle is not None:
            try:
                self.backend.unwatch(self._config_handle)
            except WatchError as e:
                logger.warning(f"Error while unwatching config directory: {e}")
            self._config_handle = None

        await self.database.close()
        logger.info("Pipeline stopped")

    async def run_forever(self) -> None:
        """Start and run until the router loop exits."""
        await self.start()
        try:
            await self._loop_task
        finally:
            await self.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    # -------------------------------------------------------------------------
    # Control
    # -------------------------------------------------------------------------

    def request_reload(self) -> None:
        """Queue a configuration reload for the router loop to perform."""
        self.backend.queue.put_nowait(
            RawNotification(path=self.settings.config_path, kind=ChangeKind.MODIFIED)
        )

    def _watch_config_file(self) -> None:
        # The parent directory is watched so that editors which replace the
        # file on save are still noticed.
        config_dir = self.settings.config_path.parent
        try:
            self._config_handle = self.backend.watch(config_dir)
        except WatchError as e:
            self.reporter.report(
                ErrorKind.WATCH,
                f"Cannot watch config directory {config_dir}, live reload disabled: {e.reason}",
            )

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    async def get_stats(self) -> dict:
        """Get pipeline statistics."""
        loop_stats = self.loop.stats() if self.loop else {}
        return {
            "running": self._running,
            "config_path": str(self.settings.config_path),
            "watched_directories": len(self.watch_set) if self.watch_set else 0,
            "moves_logged": await self.move_log.count() if self.move_log else 0,
            "errors_reported": len(self.reporter),
            **loop_stats,
        }
