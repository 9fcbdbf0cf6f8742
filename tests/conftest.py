"""
Fixtures compartilhadas entre todos os testes.
"""

import base64
import json

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def make_jwt(payload: dict) -> str:
    """JWT sem assinatura válida: o serviço só lê o payload."""

    def _segment(data: dict) -> str:
        raw = json.dumps(data).encode()
        return base64.urlsafe_b64encode(raw).decode().rstrip("=")

    return f"{_segment({'alg': 'HS256', 'typ': 'JWT'})}.{_segment(payload)}.assinatura"


SERVICE_TOKEN = make_jwt({"role": "service_role", "iss": "supabase"})


# ---------------------------------------------------------------------------
# Configuração Dynaconf isolada para testes
# Usa monkeypatch para sobrescrever os atributos sem tocar em arquivos .toml
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def patch_settings(monkeypatch):
    """
    Sobrescreve as settings do Dynaconf com valores de teste.
    `autouse=True` garante que nenhum teste use credenciais reais.
    """
    from follow_manager import config

    monkeypatch.setattr(config.settings, "discord_bot_token", "bot-token")
    monkeypatch.setattr(config.settings, "discord_guild_id", "g1")
    monkeypatch.setattr(config.settings, "discord_api_base_url", "https://discord.test/api/v10")
    monkeypatch.setattr(config.settings, "allowed_user_ids", ["user-1"])
    monkeypatch.setattr(config.settings, "allowed_origins", ["https://dashboard.test"])
    monkeypatch.setattr(config.settings, "supabase_url", "https://project.supabase.test")
    monkeypatch.setattr(config.settings, "supabase_anon_key", "anon-key")
    monkeypatch.setattr(config.settings, "service_role_key", SERVICE_TOKEN)


# ---------------------------------------------------------------------------
# Registros crus do Discord
# ---------------------------------------------------------------------------


@pytest.fixture
def guild():
    from follow_manager.models.discord import DiscordGuild

    return DiscordGuild(id="g1", name="Guild One")


@pytest.fixture
def channels():
    from follow_manager.models.discord import DiscordChannel

    return [
        DiscordChannel(id="c1", name="news"),
        DiscordChannel(id="c2", name="Announcements"),
        DiscordChannel(id="c3", name="éclairs"),
    ]


@pytest.fixture
def webhooks():
    """Mistura de webhooks seguidores, incoming e com campos ausentes."""
    from follow_manager.models.discord import DiscordWebhook

    return [
        DiscordWebhook.model_validate(raw)
        for raw in [
            {
                "id": "w1",
                "type": 2,
                "channel_id": "c1",
                "source_guild": {"id": "s1", "name": "Source"},
                "source_channel": {"id": "sc1", "name": "Announcements"},
            },
            {"id": "w2", "type": 1, "channel_id": "c1"},
            {
                "id": "w3",
                "type": 2,
                "channel_id": "c2",
                "source_guild": {"id": "s2", "name": "beta guild"},
                "source_channel": {"id": "sc3", "name": "zeta"},
            },
            {
                "id": "w4",
                "type": 2,
                "channel_id": "c2",
                "source_guild": {"id": "s1", "name": "Source"},
                "source_channel": {"id": "sc2", "name": "Alpha"},
            },
            {"id": "w5", "type": 2, "channel_id": "c9"},
            {
                "id": "w6",
                "type": 2,
                "source_guild": {"id": "s3"},
                "source_channel": {"id": "sc6"},
            },
            {
                "id": "w7",
                "type": 2,
                "channel_id": "c3",
                "source_channel": {"id": "sc7", "name": "Dev Log"},
            },
        ]
    ]


# ---------------------------------------------------------------------------
# Banco em memória isolado por teste
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    from follow_manager.database import Base
    from follow_manager.models import inventory_row  # noqa: F401

    eng = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
def service_token() -> str:
    return SERVICE_TOKEN


@pytest.fixture
def jwt_factory():
    return make_jwt
