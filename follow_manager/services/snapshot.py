"""
follow_manager/services/snapshot.py

Snapshot persistido do inventário: uma linha por follow.

- `flatten_inventory()` / `build_snapshot_rows()` — inventário (ou registros
  crus) → linhas, todas com o mesmo `refreshed_at`
- `rows_to_inventory()` — caminho de leitura: linhas → `FollowInventory`,
  agrupado e ordenado pelas mesmas regras da busca ao vivo
- `replace_inventory()` / `load_inventory_rows()` — acesso ao banco
"""

import logging
from typing import Iterable, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from follow_manager.models.discord import DiscordChannel, DiscordGuild, DiscordWebhook
from follow_manager.models.inventory import FollowInventory, SnapshotRow
from follow_manager.models.inventory_row import InventoryRow
from follow_manager.services.inventory import (
    group_follows,
    make_follow_link,
    resolve_follows,
)

log = logging.getLogger(__name__)

EMPTY_GUILD_ID = "Unknown"


def flatten_inventory(inventory: FollowInventory, refreshed_at: str) -> list[SnapshotRow]:
    return [
        SnapshotRow(
            webhook_id=follow.webhook_id,
            guild_id=inventory.guild_id,
            guild_name=inventory.guild_name,
            destination_channel_id=group.destination_channel_id,
            destination_channel_name=group.destination_channel_name,
            source_guild_id=follow.source_guild_id,
            source_guild_name=follow.source_guild_name,
            source_channel_id=follow.source_channel_id,
            source_channel_name=follow.source_channel_name,
            refreshed_at=refreshed_at,
        )
        for group in inventory.destination_channels
        for follow in group.follows
    ]


def build_snapshot_rows(
    guild_id: str,
    guild: DiscordGuild,
    webhooks: Iterable[DiscordWebhook],
    channels: Iterable[DiscordChannel],
    refreshed_at: str,
) -> list[SnapshotRow]:
    """Linhas direto dos registros crus, sem passar pelo agrupamento."""
    return [
        SnapshotRow(
            webhook_id=follow.webhook_id,
            guild_id=guild_id,
            guild_name=guild.name,
            destination_channel_id=destination_id,
            destination_channel_name=destination_name,
            source_guild_id=follow.source_guild_id,
            source_guild_name=follow.source_guild_name,
            source_channel_id=follow.source_channel_id,
            source_channel_name=follow.source_channel_name,
            refreshed_at=refreshed_at,
        )
        for destination_id, destination_name, follow in resolve_follows(webhooks, channels)
    ]


def rows_to_inventory(rows: Sequence[SnapshotRow]) -> FollowInventory:
    """
    Reconstrói o inventário a partir do snapshot.

    `fetched_at` vira o maior `refreshed_at` presente. Sem linhas, retorna o
    payload vazio `{guildId: "Unknown", fetchedAt: "", destinationChannels: []}`.
    """
    if not rows:
        return FollowInventory(guild_id=EMPTY_GUILD_ID, fetched_at="", destination_channels=[])

    first = rows[0]
    resolved = (
        (
            row.destination_channel_id,
            row.destination_channel_name,
            make_follow_link(
                webhook_id=row.webhook_id,
                source_guild_id=row.source_guild_id,
                source_guild_name=row.source_guild_name,
                source_channel_id=row.source_channel_id,
                source_channel_name=row.source_channel_name,
            ),
        )
        for row in rows
    )

    return FollowInventory(
        guild_id=first.guild_id,
        guild_name=first.guild_name,
        fetched_at=max(row.refreshed_at for row in rows),
        destination_channels=group_follows(resolved),
    )


# ---------------------------------------------------------------------------
# Banco
# ---------------------------------------------------------------------------


async def replace_inventory(
    session: AsyncSession,
    guild_id: str,
    rows: Sequence[SnapshotRow],
) -> int:
    """
    Substitui todas as linhas da guild pelas novas.

    Deve rodar dentro de uma única transação (o chamador controla o
    `session.begin()`): leitores veem o snapshot antigo inteiro ou o novo
    inteiro. Retorna a quantidade de linhas gravadas.
    """
    await session.execute(delete(InventoryRow).where(InventoryRow.guild_id == guild_id))
    session.add_all(InventoryRow(**row.model_dump()) for row in rows)
    await session.flush()
    log.info(f"Snapshot da guild {guild_id} substituído com {len(rows)} linhas")
    return len(rows)


async def load_inventory_rows(session: AsyncSession) -> list[SnapshotRow]:
    result = await session.execute(select(InventoryRow))
    return [SnapshotRow.model_validate(row) for row in result.scalars()]
