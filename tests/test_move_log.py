"""Tests for the SQLite move log."""

import pytest

from frouter.errors import SinkError
from frouter.models import MoveRecord
from frouter.storage import Database, MoveLog


def make_record(name: str, filehash: str = "ab" * 32) -> MoveRecord:
    return MoveRecord(
        source_path=f"/in/{name}",
        destination_path=f"/dest/{name}",
        filename=name,
        timestamp="2024-03-01 14:05:09",
        filehash=filehash,
    )


class TestMoveLog:
    """Tests for MoveLog."""

    @pytest.mark.asyncio
    async def test_committed_batch_is_persisted(self, temp_db):
        move_log = MoveLog(temp_db)

        await move_log.begin()
        await move_log.append(make_record("a.txt"))
        await move_log.append(make_record("b.txt"))
        await move_log.commit()

        assert await move_log.count() == 2
        recent = await move_log.list_recent()
        assert [r.filename for r in recent] == ["b.txt", "a.txt"]
        assert recent[0].destination_path == "/dest/b.txt"
        assert recent[0].timestamp == "2024-03-01 14:05:09"

    @pytest.mark.asyncio
    async def test_rollback_discards_uncommitted_entries(self, temp_db):
        move_log = MoveLog(temp_db)

        await move_log.begin()
        await move_log.append(make_record("a.txt"))
        await move_log.rollback()

        assert await move_log.count() == 0

    @pytest.mark.asyncio
    async def test_rollback_without_transaction_is_noop(self, temp_db):
        await MoveLog(temp_db).rollback()

    @pytest.mark.asyncio
    async def test_nested_begin_raises_sink_error(self, temp_db):
        move_log = MoveLog(temp_db)
        await move_log.begin()

        with pytest.raises(SinkError, match="begin"):
            await move_log.begin()

        await move_log.rollback()

    @pytest.mark.asyncio
    async def test_commit_without_transaction_raises_sink_error(self, temp_db):
        with pytest.raises(SinkError, match="commit"):
            await MoveLog(temp_db).commit()

    @pytest.mark.asyncio
    async def test_disconnected_database_raises_sink_error(self, tmp_path):
        move_log = MoveLog(Database(tmp_path / "never-opened.db"))

        with pytest.raises(SinkError):
            await move_log.begin()

    @pytest.mark.asyncio
    async def test_find_by_hash(self, temp_db):
        move_log = MoveLog(temp_db)
        await move_log.begin()
        await move_log.append(make_record("a.txt", filehash="11" * 32))
        await move_log.append(make_record("b.txt", filehash="22" * 32))
        await move_log.append(make_record("a_1.txt", filehash="11" * 32))
        await move_log.commit()

        matches = await move_log.find_by_hash("11" * 32)

        assert [r.filename for r in matches] == ["a.txt", "a_1.txt"]

    @pytest.mark.asyncio
    async def test_entries_survive_reconnect(self, tmp_path):
        db_path = tmp_path / "moves.db"
        db = Database(db_path)
        await db.connect()
        move_log = MoveLog(db)
        await move_log.begin()
        await move_log.append(make_record("a.txt"))
        await move_log.commit()
        await db.close()

        reopened = Database(db_path)
        await reopened.connect()
        try:
            assert await MoveLog(reopened).count() == 1
        finally:
            await reopened.close()
