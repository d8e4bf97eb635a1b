"""Shared fixtures for frouter tests."""

import asyncio
from pathlib import Path
from types import SimpleNamespace

import pytest
import yaml

from frouter.errors import SinkError, WatchError
from frouter.models import ChangeKind
from frouter.storage import Database, MoveLog
from frouter.watchers import RawNotification, WatchHandle


# -------------------------------------------------------------------------
# Test Doubles
# -------------------------------------------------------------------------

class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWatchBackend:
    """In-memory watch backend.

    emit() only delivers a notification when the file's directory is
    currently watched, like a real backend would.
    """

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.watch_failures: dict[Path, str] = {}
        self.unwatch_failures: dict[Path, str] = {}
        self.active: dict[Path, WatchHandle] = {}
        self.watch_calls: list[Path] = []
        self.unwatch_calls: list[Path] = []
        self.closed = False

    def watch(self, path: Path) -> WatchHandle:
        path = Path(path)
        self.watch_calls.append(path)
        if path in self.watch_failures:
            raise WatchError(path, self.watch_failures[path])
        handle = WatchHandle(path=path)
        self.active[path] = handle
        return handle

    def unwatch(self, handle: WatchHandle) -> None:
        self.unwatch_calls.append(handle.path)
        if handle.path in self.unwatch_failures:
            raise WatchError(handle.path, self.unwatch_failures[handle.path])
        if not handle.active:
            raise WatchError(handle.path, "not currently watched")
        handle.stop_event.set()
        self.active.pop(handle.path, None)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.queue.put_nowait(None)

    def emit(self, path: Path, kind: ChangeKind = ChangeKind.CREATED) -> bool:
        path = Path(path)
        if path.parent not in self.active and path not in self.active:
            return False
        self.queue.put_nowait(RawNotification(path=path, kind=kind))
        return True


class RecordingMoveLog(MoveLog):
    """MoveLog that remembers what each committed transaction contained."""

    def __init__(self, database: Database):
        super().__init__(database)
        self.begins = 0
        self.commits: list[list] = []
        self._current: list = []

    async def begin(self) -> None:
        await super().begin()
        self.begins += 1
        self._current = []

    async def append(self, record) -> None:
        await super().append(record)
        self._current.append(record)

    async def commit(self) -> None:
        await super().commit()
        self.commits.append(list(self._current))


class FailingCommitMoveLog(RecordingMoveLog):
    """MoveLog whose commit always fails."""

    async def commit(self) -> None:
        raise SinkError("commit", "disk I/O error")


class FailingBeginMoveLog(RecordingMoveLog):
    """MoveLog that cannot open a transaction."""

    async def begin(self) -> None:
        self.begins += 1
        raise SinkError("begin", "database is locked")


# -------------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------------

def write_config(path: Path, directories: dict, extensions: list, **extra) -> Path:
    """Write a YAML routing configuration."""
    data = {
        "directories": {name: str(p) for name, p in directories.items()},
        "extensions": [
            {"name": name, "path": str(dest), "enabled": enabled}
            for name, dest, enabled in extensions
        ],
        **extra,
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# -------------------------------------------------------------------------
# Fixtures
# -------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def backend():
    return FakeWatchBackend()


@pytest.fixture
def layout(tmp_path):
    """An inbox directory routed by .txt and .pdf, plus a config file."""
    inbox = tmp_path / "inbox"
    text_dest = tmp_path / "dest" / "text"
    pdf_dest = tmp_path / "dest" / "pdf"
    inbox.mkdir()
    config_path = write_config(
        tmp_path / "config" / "config.yaml",
        directories={"inbox": inbox},
        extensions=[("txt", text_dest, True), ("pdf", pdf_dest, True)],
    )
    return SimpleNamespace(
        root=tmp_path,
        inbox=inbox,
        text_dest=text_dest,
        pdf_dest=pdf_dest,
        config_path=config_path,
    )


@pytest.fixture
async def temp_db(tmp_path):
    """Create a temporary database for testing."""
    db = Database(tmp_path / "db" / "test.db")
    await db.connect()
    yield db
    await db.close()
