"""Tests for chrio.app — the application composition root."""

from __future__ import annotations

import pytest

from chrio import ChrioApp
from chrio.schemas.config import AppConfig


def _config(tmp_path, db_name: str = "chrio.db") -> AppConfig:
    return AppConfig(db_path=str(tmp_path / db_name), photos_dir=str(tmp_path / "photos"))


@pytest.mark.asyncio
async def test_open_and_close(tmp_path):
    chrio = await ChrioApp.open(_config(tmp_path))

    assert chrio.storage_available
    assert chrio.storage_error is None
    assert chrio.gateway.available
    assert chrio.photos.root == tmp_path / "photos"

    await chrio.close()
    assert not chrio.storage_available
    await chrio.close()


@pytest.mark.asyncio
async def test_state_objects_share_one_emitter(tmp_path):
    async with await ChrioApp.open(_config(tmp_path)) as chrio:
        assert chrio.clients._events is chrio.events
        assert chrio.sessions._events is chrio.events
        assert chrio.todos._events is chrio.events


@pytest.mark.asyncio
async def test_data_persists_across_opens(tmp_path):
    fields = {"firstname": "Alice", "lastname": "Ng", "dob": "1985-03-02", "sex": "F"}
    async with await ChrioApp.open(_config(tmp_path)) as chrio:
        client_id = await chrio.clients.create_client(fields)

    async with await ChrioApp.open(_config(tmp_path)) as chrio:
        await chrio.clients.refresh_clients()
        assert [c.id for c in chrio.clients.clients] == [client_id]


@pytest.mark.asyncio
async def test_unavailable_storage_still_starts(tmp_path, caplog):
    blocker = tmp_path / "file"
    blocker.write_text("x")

    async with await ChrioApp.open(_config(blocker, "chrio.db")) as chrio:
        assert not chrio.storage_available
        assert chrio.storage_error is not None
        assert not chrio.gateway.available

    assert "Persistence unavailable" in caplog.text


@pytest.mark.asyncio
async def test_in_memory_database():
    async with await ChrioApp.open(AppConfig(db_path=":memory:")) as chrio:
        assert await chrio.todos.add_todo("Try it") is not None
        assert len(chrio.todos.todos) == 1
