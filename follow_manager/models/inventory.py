"""
follow_manager/models/inventory.py

Payloads do inventário de follows.

As chaves JSON são camelCase (formato consumido pelo dashboard) e os campos
opcionais ausentes são omitidos. Use `to_payload()` para serializar.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class FollowLink(CamelModel):
    webhook_id: str
    source_guild_id: str | None = None
    source_guild_name: str | None = None
    source_channel_id: str | None = None
    source_channel_name: str | None = None


class DestinationChannelGroup(CamelModel):
    destination_channel_id: str
    destination_channel_name: str
    follows: list[FollowLink] = []


class FollowInventory(CamelModel):
    guild_id: str
    guild_name: str | None = None
    fetched_at: str
    destination_channels: list[DestinationChannelGroup] = []


class SourceGuildFollow(CamelModel):
    destination_channel_id: str
    destination_channel_name: str
    source_channel_name: str | None = None
    webhook_id: str


class SourceGuildGroup(CamelModel):
    source_guild_id: str
    source_guild_name: str | None = None
    follows: list[SourceGuildFollow] = []


class SourceGuildInventory(CamelModel):
    guild_id: str
    guild_name: str | None = None
    fetched_at: str
    source_guilds: list[SourceGuildGroup] = []


class SnapshotRow(BaseModel):
    """Linha do snapshot persistido, com as mesmas colunas de `InventoryRow`."""

    model_config = ConfigDict(from_attributes=True)

    webhook_id: str
    guild_id: str
    guild_name: str | None = None
    destination_channel_id: str
    destination_channel_name: str
    source_guild_id: str | None = None
    source_guild_name: str | None = None
    source_channel_id: str | None = None
    source_channel_name: str | None = None
    refreshed_at: str
