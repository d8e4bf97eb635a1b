"""Raw watch primitive: per-directory watchfiles tasks feeding one queue."""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, Union

from watchfiles import awatch, Change

from ..errors import WatchError
from ..models import ChangeKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawNotification:
    """A single change reported by the watch backend."""
    path: Path
    kind: ChangeKind


@dataclass(frozen=True)
class WatchFailure:
    """A watch task died; reported on the channel instead of raised."""
    path: Path
    message: str


# None is the sentinel for "channel permanently closed".
ChannelItem = Optional[Union[RawNotification, WatchFailure]]


@dataclass(eq=False)
class WatchHandle:
    """Opaque handle for one watched path."""
    path: Path
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)
    task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return not self.stop_event.is_set()


class WatchBackend(Protocol):
    """Contract the router needs from a watch primitive."""

    queue: "asyncio.Queue[ChannelItem]"

    def watch(self, path: Path) -> WatchHandle:
        ...

    def unwatch(self, handle: WatchHandle) -> None:
        ...

    def close(self) -> None:
        ...


_CHANGE_KINDS = {
    Change.added: ChangeKind.CREATED,
    Change.modified: ChangeKind.MODIFIED,
    Change.deleted: ChangeKind.DELETED,
}


class WatchfilesBackend:
    """
    Watches paths with watchfiles.awatch, one task per path.

    Every change from every task lands on the same asyncio.Queue, which is
    consumed by a single router loop. watch() must be called from inside a
    running event loop.

    Usage:
        backend = WatchfilesBackend()
        handle = backend.watch(Path("/home/me/Downloads"))
        item = await backend.queue.get()
        backend.unwatch(handle)
        backend.close()
    """

    def __init__(self, step_ms: int = 100, debounce_ms: int = 200):
        self.queue: asyncio.Queue[ChannelItem] = asyncio.Queue()
        self.step_ms = step_ms
        self.debounce_ms = debounce_ms
        self._closed = False

    def watch(self, path: Path) -> WatchHandle:
        """Start watching a single path (non-recursive)."""
        if self._closed:
            raise WatchError(path, "backend is closed")
        path = Path(path)
        # On 3.10/3.11 exists() raises instead of returning False for EACCES
        try:
            exists = path.exists()
            is_dir = exists and path.is_dir()
        except OSError as e:
            raise WatchError(path, str(e)) from e
        if not exists:
            raise WatchError(path, "path does not exist")
        mode = os.R_OK | os.X_OK if is_dir else os.R_OK
        if not os.access(path, mode):
            raise WatchError(path, "permission denied")

        handle = WatchHandle(path=path)
        handle.task = asyncio.create_task(self._watch_path(handle), name=f"watch:{path}")
        logger.debug(f"Started watch task for {path}")
        return handle

    def unwatch(self, handle: WatchHandle) -> None:
        """Stop the watch task behind a handle."""
        if not handle.active:
            raise WatchError(handle.path, "not currently watched")
        handle.stop_event.set()
        if handle.task is not None and not handle.task.done():
            handle.task.cancel()
        logger.debug(f"Stopped watch task for {handle.path}")

    def close(self) -> None:
        """Close the channel; the consumer sees None and stops."""
        if self._closed:
            return
        self._closed = True
        self.queue.put_nowait(None)

    async def _watch_path(self, handle: WatchHandle) -> None:
        try:
            async for changes in awatch(
                handle.path,
                stop_event=handle.stop_event,
                recursive=False,
                step=self.step_ms,
                debounce=self.debounce_ms,
            ):
                for change_type, path_str in changes:
                    kind = _CHANGE_KINDS.get(change_type, ChangeKind.OTHER)
                    self.queue.put_nowait(RawNotification(path=Path(path_str), kind=kind))
        except asyncio.CancelledError:
            logger.debug(f"Watch cancelled: {handle.path}")
        except Exception as e:
            logger.error(f"Error in watch {handle.path}: {e}", exc_info=True)
            if not self._closed:
                self.queue.put_nowait(WatchFailure(path=handle.path, message=str(e)))
