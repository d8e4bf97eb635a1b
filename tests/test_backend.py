"""Tests for the watchfiles-based watch backend."""

import asyncio
from pathlib import Path

import pytest
from watchfiles import Change

from frouter.errors import WatchError
from frouter.models import ChangeKind, Configuration, FileExtension
from frouter.watchers import RawNotification, WatchFailure, WatchfilesBackend, WatchSetManager
from frouter.watchers import backend as backend_module


@pytest.fixture
async def real_backend():
    backend = WatchfilesBackend(step_ms=50, debounce_ms=50)
    yield backend
    backend.close()
    tasks = [t for t in asyncio.all_tasks() if t.get_name().startswith("watch:")]
    for task in tasks:
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def next_notification(queue, path: Path, kind: ChangeKind, timeout: float = 5.0) -> RawNotification:
    """Read the queue until a notification for path with kind arrives."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while True:
        remaining = deadline - loop.time()
        if remaining <= 0:
            raise AssertionError(f"no {kind.value} notification for {path}")
        item = await asyncio.wait_for(queue.get(), timeout=remaining)
        if isinstance(item, RawNotification) and item.path == path and item.kind == kind:
            return item


def raise_for(target: Path, original):
    """Wrap a Path method so it raises EACCES for one path only."""

    def wrapper(self, *args, **kwargs):
        if self == target:
            raise PermissionError(13, "Permission denied", str(self))
        return original(self, *args, **kwargs)

    return wrapper


class TestWatch:
    """Starting and stopping watches."""

    @pytest.mark.asyncio
    async def test_change_kinds_are_mapped(self, real_backend, tmp_path):
        handle = real_backend.watch(tmp_path)
        await asyncio.sleep(0.3)
        path = tmp_path / "a.txt"

        path.write_text("hello")
        created = await next_notification(real_backend.queue, path, ChangeKind.CREATED)
        path.unlink()
        deleted = await next_notification(real_backend.queue, path, ChangeKind.DELETED)

        assert created.path == deleted.path == path
        real_backend.unwatch(handle)

    def test_change_table_covers_watchfiles_changes(self):
        assert backend_module._CHANGE_KINDS == {
            Change.added: ChangeKind.CREATED,
            Change.modified: ChangeKind.MODIFIED,
            Change.deleted: ChangeKind.DELETED,
        }

    @pytest.mark.asyncio
    async def test_missing_path_raises_watch_error(self, real_backend, tmp_path):
        with pytest.raises(WatchError, match="path does not exist"):
            real_backend.watch(tmp_path / "missing")

    @pytest.mark.asyncio
    async def test_unreadable_directory_raises_watch_error(self, real_backend, tmp_path, monkeypatch):
        locked = tmp_path / "locked"
        locked.mkdir()
        monkeypatch.setattr(backend_module.os, "access", lambda path, mode: Path(path) != locked)

        with pytest.raises(WatchError, match="permission denied"):
            real_backend.watch(locked)

    @pytest.mark.asyncio
    async def test_untraversable_parent_raises_watch_error(self, real_backend, tmp_path, monkeypatch):
        """exists() raising EACCES is reported as a WatchError, not a raw OSError."""
        hidden = tmp_path / "private" / "inbox"
        hidden.mkdir(parents=True)
        monkeypatch.setattr(Path, "exists", raise_for(hidden, Path.exists))

        with pytest.raises(WatchError, match="Permission denied"):
            real_backend.watch(hidden)

    @pytest.mark.asyncio
    async def test_unwatch_twice_raises(self, real_backend, tmp_path):
        handle = real_backend.watch(tmp_path)

        real_backend.unwatch(handle)
        await asyncio.wait({handle.task}, timeout=2)

        assert handle.task.done()
        assert not handle.active
        with pytest.raises(WatchError, match="not currently watched"):
            real_backend.unwatch(handle)

    @pytest.mark.asyncio
    async def test_dead_watch_task_becomes_watch_failure(self, real_backend, tmp_path, monkeypatch):
        async def broken_awatch(*args, **kwargs):
            raise RuntimeError("inotify watch limit reached")
            yield

        monkeypatch.setattr(backend_module, "awatch", broken_awatch)
        real_backend.watch(tmp_path)

        item = await asyncio.wait_for(real_backend.queue.get(), timeout=2)

        assert item == WatchFailure(path=tmp_path, message="inotify watch limit reached")


class TestClose:
    """Closing the notification channel."""

    @pytest.mark.asyncio
    async def test_close_sends_sentinel_once(self, real_backend):
        real_backend.close()
        real_backend.close()

        assert real_backend.queue.get_nowait() is None
        assert real_backend.queue.empty()

    @pytest.mark.asyncio
    async def test_watch_after_close_raises(self, real_backend, tmp_path):
        real_backend.close()

        with pytest.raises(WatchError, match="backend is closed"):
            real_backend.watch(tmp_path)


class TestReconcileWithRealBackend:
    """A directory that cannot be watched does not stop the others."""

    @pytest.mark.asyncio
    async def test_untraversable_directory_is_one_error(self, real_backend, tmp_path, monkeypatch):
        inbox = tmp_path / "inbox"
        hidden = tmp_path / "private" / "scans"
        dest = tmp_path / "dest"
        for directory in (inbox, hidden, dest):
            directory.mkdir(parents=True)
        monkeypatch.setattr(Path, "exists", raise_for(hidden, Path.exists))
        config = Configuration(
            directories={"inbox": inbox, "scans": hidden},
            extensions=(FileExtension(name="txt", path=dest),),
        )
        manager = WatchSetManager(real_backend)

        result = manager.reconcile(None, config)

        assert [e.path for e in result.errors] == [hidden]
        assert manager.watched == {inbox, dest}
        assert manager.unwatch_all() == []
