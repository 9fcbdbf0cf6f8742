"""
follow_manager/services/views.py

Visões derivadas do inventário servidas ao dashboard: agrupamento por guild
de origem e filtro de busca por texto.
"""

from follow_manager.models.inventory import (
    DestinationChannelGroup,
    SourceGuildFollow,
    SourceGuildGroup,
)
from follow_manager.services.inventory import label_key

UNKNOWN_SOURCE_GUILD_ID = "unknown"


def group_by_source_guild(groups: list[DestinationChannelGroup]) -> list[SourceGuildGroup]:
    """
    Reagrupa os follows por guild de origem. Dentro de cada guild os follows
    mantêm a ordem do inventário (destino, depois canal de origem).
    """
    by_guild: dict[str, SourceGuildGroup] = {}

    for group in groups:
        for follow in group.follows:
            key = follow.source_guild_id or UNKNOWN_SOURCE_GUILD_ID
            guild_group = by_guild.get(key)
            if guild_group is None:
                guild_group = SourceGuildGroup(
                    source_guild_id=key,
                    source_guild_name=follow.source_guild_name,
                    follows=[],
                )
                by_guild[key] = guild_group
            guild_group.follows.append(
                SourceGuildFollow(
                    destination_channel_id=group.destination_channel_id,
                    destination_channel_name=group.destination_channel_name,
                    source_channel_name=follow.source_channel_name,
                    webhook_id=follow.webhook_id,
                )
            )

    return sorted(
        by_guild.values(),
        key=lambda g: (label_key(g.source_guild_name or g.source_guild_id), g.source_guild_id),
    )


def filter_groups(
    groups: list[DestinationChannelGroup],
    search_term: str,
) -> list[DestinationChannelGroup]:
    """
    Busca case-insensitive por substring.

    Grupo cujo nome de destino bate é mantido inteiro; senão ficam só os
    follows cujo canal ou guild de origem batem. Grupos sem nada são removidos.
    """
    term = search_term.strip().lower()
    if not term:
        return groups

    filtered = []
    for group in groups:
        if term in group.destination_channel_name.lower():
            filtered.append(group)
            continue

        follows = [
            follow
            for follow in group.follows
            if term in (follow.source_channel_name or "").lower()
            or term in (follow.source_guild_name or "").lower()
        ]
        if follows:
            filtered.append(group.model_copy(update={"follows": follows}))

    return filtered
