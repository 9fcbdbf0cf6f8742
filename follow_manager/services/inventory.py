"""
follow_manager/services/inventory.py

Agregação do inventário de follows a partir dos registros crus do Discord.

Fluxo:
1. Monta o lookup canal → nome a partir da lista de canais
2. Mantém apenas webhooks do tipo "channel follower"
3. Resolve o canal de destino de cada webhook (com fallback para o ID)
4. Agrupa por canal de destino e ordena grupos e follows

Ordenação: rótulos comparados sem diferenciar maiúsculas nem acentos
(NFKD + casefold). Empates são desfeitos pelo ID, então o resultado
independe da ordem de entrada: a busca ao vivo e o snapshot persistido
produzem exatamente a mesma estrutura.
"""

import unicodedata
from datetime import datetime, timezone
from typing import Iterable, Iterator

from follow_manager.models.discord import (
    FOLLOWER_WEBHOOK_TYPE,
    DiscordChannel,
    DiscordGuild,
    DiscordWebhook,
)
from follow_manager.models.inventory import (
    DestinationChannelGroup,
    FollowInventory,
    FollowLink,
)

UNKNOWN_DESTINATION_ID = "unknown"
UNKNOWN_SOURCE_GUILD = "Unknown Source Guild"
UNKNOWN_SOURCE_CHANNEL = "Unknown Source Channel"


def utc_now_iso() -> str:
    """Instante atual em ISO-8601 UTC, ex: 2026-02-23T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def label_key(value: str) -> str:
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return stripped.casefold()


def unknown_destination_name(channel_id: str) -> str:
    return f"Unknown Destination ({channel_id})"


def _or_fallback(value: str | None, fallback: str) -> str:
    return value if value else fallback


def make_follow_link(
    webhook_id: str,
    source_guild_id: str | None = None,
    source_guild_name: str | None = None,
    source_channel_id: str | None = None,
    source_channel_name: str | None = None,
) -> FollowLink:
    """IDs de origem passam direto; nomes ausentes viram o rótulo fixo."""
    return FollowLink(
        webhook_id=webhook_id,
        source_guild_id=source_guild_id,
        source_guild_name=_or_fallback(source_guild_name, UNKNOWN_SOURCE_GUILD),
        source_channel_id=source_channel_id,
        source_channel_name=_or_fallback(source_channel_name, UNKNOWN_SOURCE_CHANNEL),
    )


def resolve_follows(
    webhooks: Iterable[DiscordWebhook],
    channels: Iterable[DiscordChannel],
) -> Iterator[tuple[str, str, FollowLink]]:
    """
    Gera `(destination_channel_id, destination_channel_name, follow)` para
    cada webhook seguidor. Webhooks de outros tipos são ignorados.
    """
    destination_names = {channel.id: channel.name for channel in channels}

    for webhook in webhooks:
        if webhook.type != FOLLOWER_WEBHOOK_TYPE:
            continue

        destination_id = webhook.channel_id or UNKNOWN_DESTINATION_ID
        destination_name = _or_fallback(
            destination_names.get(destination_id),
            unknown_destination_name(destination_id),
        )

        source_guild = webhook.source_guild
        source_channel = webhook.source_channel
        follow = make_follow_link(
            webhook_id=webhook.id,
            source_guild_id=source_guild.id if source_guild else None,
            source_guild_name=source_guild.name if source_guild else None,
            source_channel_id=source_channel.id if source_channel else None,
            source_channel_name=source_channel.name if source_channel else None,
        )
        yield destination_id, destination_name, follow


def _follow_sort_key(follow: FollowLink) -> tuple[str, str]:
    label = follow.source_channel_name or follow.source_channel_id or ""
    return label_key(label), follow.webhook_id


def _group_sort_key(group: DestinationChannelGroup) -> tuple[str, str]:
    return label_key(group.destination_channel_name), group.destination_channel_id


def group_follows(
    resolved: Iterable[tuple[str, str, FollowLink]],
) -> list[DestinationChannelGroup]:
    """
    Agrupa por ID do canal de destino (um grupo por ID, criado na primeira
    ocorrência) e só depois ordena grupos e follows.
    """
    grouped: dict[str, DestinationChannelGroup] = {}

    for destination_id, destination_name, follow in resolved:
        group = grouped.get(destination_id)
        if group is None:
            group = DestinationChannelGroup(
                destination_channel_id=destination_id,
                destination_channel_name=destination_name,
                follows=[],
            )
            grouped[destination_id] = group
        group.follows.append(follow)

    groups = sorted(grouped.values(), key=_group_sort_key)
    for group in groups:
        group.follows.sort(key=_follow_sort_key)
    return groups


def build_inventory(
    guild_id: str,
    guild: DiscordGuild,
    webhooks: Iterable[DiscordWebhook],
    channels: Iterable[DiscordChannel],
    fetched_at: str | None = None,
) -> FollowInventory:
    """Monta o `FollowInventory` da guild. Puro, exceto pelo timestamp."""
    return FollowInventory(
        guild_id=guild_id,
        guild_name=guild.name,
        fetched_at=fetched_at or utc_now_iso(),
        destination_channels=group_follows(resolve_follows(webhooks, channels)),
    )
