"""Tests for ActivityLogDAO."""

import pytest

from rebootbot.dao.activity_log_dao import ActivityLogDAO
from rebootbot.dao.player_dao import PlayerDAO


class TestActivityLogDAO:
    @pytest.mark.asyncio
    async def test_create_stores_metadata(self, db):
        await PlayerDAO(db).create("Jane Doe", player_id="p-1")
        dao = ActivityLogDAO(db)

        entry = await dao.create(
            "browser_full_pipeline",
            "Video processed and scores calculated",
            player_id="p-1",
            metadata={"success": True, "errors": [], "replay_url": "https://replay.test/bb-1"},
        )

        assert entry.id is not None
        [stored] = await dao.get_recent()
        assert stored.id == entry.id
        assert stored.player_id == "p-1"
        assert stored.metadata == {
            "success": True,
            "errors": [],
            "replay_url": "https://replay.test/bb-1",
        }

    @pytest.mark.asyncio
    async def test_get_recent_newest_first_with_limit(self, db):
        dao = ActivityLogDAO(db)
        for i in range(5):
            await dao.create("browser_test_login", f"run {i}")

        entries = await dao.get_recent(limit=3)

        assert [e.description for e in entries] == ["run 4", "run 3", "run 2"]

    @pytest.mark.asyncio
    async def test_get_recent_filters_action(self, db):
        dao = ActivityLogDAO(db)
        await dao.create("browser_test_login", "login")
        await dao.create("browser_find_player", "find")

        entries = await dao.get_recent(action="browser_find_player")

        assert [e.description for e in entries] == ["find"]

    @pytest.mark.asyncio
    async def test_entry_without_player_or_metadata(self, db):
        entry = await ActivityLogDAO(db).create("browser_test_login", "Logged in")
        assert entry.player_id is None
        assert entry.metadata is None
