"""
Unit tests for FileSessionStore.

Tests verify:
- Records round-trip with camelCase keys and a schema version
- Writes are atomic (no temp files left behind)
- load_latest picks the newest incomplete session by mtime
- Corrupt records are skipped rather than aborting a scan
"""

import json
import os
from unittest.mock import patch

import pytest

from handoff.core.domain.errors import SessionPersistenceError
from handoff.core.domain.models import CommandResult, ExecutionOutcome
from handoff.core.domain.session import advance_sequence, apply_outcome, new_session
from handoff.infrastructure.persistence.file_session_store import SCHEMA_VERSION, FileSessionStore


@pytest.fixture
def store(tmp_path):
    return FileSessionStore(tmp_path / "sessions")


def _set_mtime(store, session, mtime):
    path = store.sessions_dir / f"{session.session_id}.json"
    os.utime(path, (mtime, mtime))


class TestSaveAndLoad:
    @pytest.mark.asyncio
    async def test_round_trip(self, store):
        session = apply_outcome(
            advance_sequence(new_session("Write tests")),
            ExecutionOutcome(
                results=[CommandResult(command_type="RUN_COMMAND", summary="Ran", success=True, output="ok")],
                read_file_requests=["a.py"],
            ),
        )

        await store.save(session)
        loaded = await store.load(session.session_id)

        assert loaded == session

    @pytest.mark.asyncio
    async def test_record_format(self, store):
        session = new_session("t")

        await store.save(session)

        record = json.loads((store.sessions_dir / f"{session.session_id}.json").read_text())
        assert record["schemaVersion"] == SCHEMA_VERSION
        assert record["sessionId"] == session.session_id
        assert record["isComplete"] is False

    @pytest.mark.asyncio
    async def test_save_overwrites_and_leaves_no_temp_files(self, store):
        session = new_session("t")
        await store.save(session)
        await store.save(advance_sequence(session))

        assert [p.name for p in store.sessions_dir.iterdir()] == [f"{session.session_id}.json"]
        assert (await store.load(session.session_id)).sequence_number == 1

    @pytest.mark.asyncio
    async def test_load_missing(self, store):
        assert await store.load("deadbeef") is None

    @pytest.mark.asyncio
    async def test_save_failure_raises_persistence_error(self, store):
        session = new_session("t")

        with patch(
            "handoff.infrastructure.persistence.file_session_store.atomic_write_text_async",
            side_effect=OSError("disk full"),
        ):
            with pytest.raises(SessionPersistenceError, match="disk full"):
                await store.save(session)


class TestLoadLatest:
    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.load_latest() is None
        assert await store.list_sessions() == []

    @pytest.mark.asyncio
    async def test_newest_incomplete_session_wins(self, store):
        older = new_session("older")
        newer = new_session("newer")
        done = apply_outcome(new_session("done"), ExecutionOutcome(task_complete=True))
        for s in (older, newer, done):
            await store.save(s)
        _set_mtime(store, older, 1_000)
        _set_mtime(store, newer, 2_000)
        _set_mtime(store, done, 3_000)

        latest = await store.load_latest()

        assert latest.session_id == newer.session_id

    @pytest.mark.asyncio
    async def test_all_complete_returns_none(self, store):
        await store.save(apply_outcome(new_session("t"), ExecutionOutcome(task_complete=True)))

        assert await store.load_latest() is None

    @pytest.mark.asyncio
    async def test_corrupt_records_are_skipped(self, store):
        good = new_session("good")
        await store.save(good)
        _set_mtime(store, good, 1_000)
        (store.sessions_dir / "broken.json").write_text("{not json", encoding="utf-8")
        (store.sessions_dir / "wrong.json").write_text('{"foo": 1}', encoding="utf-8")

        latest = await store.load_latest()
        sessions = await store.list_sessions()

        assert latest.session_id == good.session_id
        assert [s.session_id for s in sessions] == [good.session_id]

    @pytest.mark.asyncio
    async def test_list_sessions_newest_first(self, store):
        first, second = new_session("a"), new_session("b")
        await store.save(first)
        await store.save(second)
        _set_mtime(store, first, 2_000)
        _set_mtime(store, second, 1_000)

        sessions = await store.list_sessions()

        assert [s.task for s in sessions] == ["a", "b"]
