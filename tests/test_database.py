"""
Testes para follow_manager/database.py

Cobre:
- engine é criada com a URL correta
- async_session_factory retorna sessões AsyncSession
- get_session fornece sessão funcional e faz commit automático
- get_session faz rollback em caso de exceção
- init_db cria a tabela do snapshot
- init_db é idempotente
"""

from unittest.mock import patch

import pytest
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine


def _row(webhook_id: str = "w1"):
    from follow_manager.models.inventory_row import InventoryRow

    return InventoryRow(
        webhook_id=webhook_id,
        guild_id="g1",
        guild_name="Guild One",
        destination_channel_id="c1",
        destination_channel_name="news",
        refreshed_at="2026-02-23T12:00:00.000Z",
    )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


def test_engine_is_async_engine():
    from follow_manager.database import engine

    assert isinstance(engine, AsyncEngine)


def test_engine_uses_configured_url():
    """engine deve usar a URL definida em settings.database_url."""
    from follow_manager.config import settings
    from follow_manager.database import engine

    assert engine.url.render_as_string(hide_password=False) == settings.database_url


def test_async_session_factory_is_sessionmaker():
    from follow_manager.database import async_session_factory

    assert isinstance(async_session_factory, async_sessionmaker)


# ---------------------------------------------------------------------------
# get_session
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_get_session_yields_async_session(session_factory):
    from follow_manager.database import get_session

    with patch("follow_manager.database.async_session_factory", session_factory):
        gen = get_session()
        session = await gen.__anext__()
        assert isinstance(session, AsyncSession)
        try:
            await gen.aclose()
        except StopAsyncIteration:
            pass


@pytest.mark.asyncio
async def test_get_session_commits_on_success(session_factory):
    """Sair do gerador sem exceção faz commit."""
    from follow_manager.database import get_session
    from follow_manager.models.inventory_row import InventoryRow

    with patch("follow_manager.database.async_session_factory", session_factory):
        gen = get_session()
        session = await gen.__anext__()
        session.add(_row())
        with pytest.raises(StopAsyncIteration):
            await gen.__anext__()

    async with session_factory() as verify_session:
        assert await verify_session.get(InventoryRow, "w1") is not None


@pytest.mark.asyncio
async def test_get_session_rollback_on_exception(session_factory):
    """get_session deve fazer rollback quando uma exceção ocorre."""
    from follow_manager.database import get_session
    from follow_manager.models.inventory_row import InventoryRow

    with patch("follow_manager.database.async_session_factory", session_factory):
        try:
            gen = get_session()
            session = await gen.__anext__()
            session.add(_row())
            await gen.athrow(RuntimeError("erro simulado"))
        except (RuntimeError, StopAsyncIteration):
            pass

    async with session_factory() as verify_session:
        assert await verify_session.get(InventoryRow, "w1") is None


# ---------------------------------------------------------------------------
# init_db
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_init_db_creates_tables():
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    with patch("follow_manager.database.engine", test_engine):
        from follow_manager.database import init_db

        await init_db()

    async with test_engine.connect() as conn:
        tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
    assert "follow_manager_inventory" in tables

    await test_engine.dispose()


@pytest.mark.asyncio
async def test_init_db_is_idempotent():
    """Chamar init_db duas vezes não deve causar erro (tabelas já existentes)."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    with patch("follow_manager.database.engine", test_engine):
        from follow_manager.database import init_db

        await init_db()
        await init_db()

    await test_engine.dispose()
