"""
follow_manager/services/sync.py

Sync do snapshot: busca a guild no Discord, achata em linhas e substitui o
snapshot persistido numa única transação.

Compartilhado pela rota `/sync-follow-manager-inventory` e pelo script
`scripts/sync_snapshot.py`.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from follow_manager.config import DiscordConfig
from follow_manager.services.discord import fetch_guild_records
from follow_manager.services.inventory import utc_now_iso
from follow_manager.services.snapshot import build_snapshot_rows, replace_inventory

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    guild_id: str
    row_count: int
    refreshed_at: str

    def to_payload(self) -> dict:
        return {
            "guildId": self.guild_id,
            "rowCount": self.row_count,
            "refreshedAt": self.refreshed_at,
        }


async def run_sync(
    config: DiscordConfig,
    session_factory: async_sessionmaker[AsyncSession],
) -> SyncResult:
    """
    Erros do Discord (`DiscordRequestError`, `httpx.HTTPError`) e do banco
    (`SQLAlchemyError`) propagam para o chamador. Uma falha no banco faz
    rollback: o snapshot anterior continua intacto.
    """
    records = await fetch_guild_records(config)
    refreshed_at = utc_now_iso()
    rows = build_snapshot_rows(
        config.guild_id,
        records.guild,
        records.webhooks,
        records.channels,
        refreshed_at,
    )

    async with session_factory() as session:
        async with session.begin():
            row_count = await replace_inventory(session, config.guild_id, rows)

    log.info(f"Sync concluído: guild={config.guild_id}, linhas={row_count}")
    return SyncResult(guild_id=config.guild_id, row_count=row_count, refreshed_at=refreshed_at)
