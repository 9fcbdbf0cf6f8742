"""
follow_manager/database.py

Configuração do banco de dados via SQLAlchemy assíncrono.

Exporta:
- `engine`                — engine assíncrona compartilhada
- `async_session_factory` — fábrica de sessões usada pelo sync do snapshot
- `Base`                  — classe base para os modelos ORM
- `get_session()`         — dependência FastAPI que fornece sessão por request
- `init_db()`             — cria as tabelas na inicialização da aplicação
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from follow_manager.config import settings


def _connect_args(url: str) -> dict:
    # check_same_thread só existe no driver SQLite
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

engine = create_async_engine(
    settings.database_url,
    echo=False,
    connect_args=_connect_args(settings.database_url),
)

# ---------------------------------------------------------------------------
# Fábrica de sessões
# ---------------------------------------------------------------------------

async_session_factory = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,  # evita lazy-load após commit em contexto assíncrono
    class_=AsyncSession,
)


# ---------------------------------------------------------------------------
# Base declarativa
# ---------------------------------------------------------------------------

class Base(DeclarativeBase):
    pass


# ---------------------------------------------------------------------------
# Dependência FastAPI
# ---------------------------------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependência FastAPI que fornece uma sessão de banco por request.
    Faz commit automático em caso de sucesso e rollback em caso de exceção.
    """
    async with async_session_factory() as session:
        async with session.begin():
            yield session


# ---------------------------------------------------------------------------
# Inicialização
# ---------------------------------------------------------------------------

async def init_db() -> None:
    """
    Cria todas as tabelas definidas nos modelos ORM caso ainda não existam.
    Deve ser chamado uma única vez no startup da aplicação (lifespan do FastAPI).
    """
    # Registra os modelos no metadata da Base antes do create_all
    from follow_manager.models import inventory_row  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
