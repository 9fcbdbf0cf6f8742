"""
follow_manager/models/discord.py

Registros crus da API do Discord consumidos pelo inventário.
Apenas os campos usados são declarados; o resto do payload é ignorado.
"""

from pydantic import BaseModel

# Tipo de webhook criado pelo "Follow" de um canal de anúncios
FOLLOWER_WEBHOOK_TYPE = 2


class DiscordSourceRef(BaseModel):
    id: str | None = None
    name: str | None = None


class DiscordWebhook(BaseModel):
    id: str
    type: int | None = None
    channel_id: str | None = None
    source_channel: DiscordSourceRef | None = None
    source_guild: DiscordSourceRef | None = None


class DiscordChannel(BaseModel):
    id: str
    name: str | None = None


class DiscordGuild(BaseModel):
    id: str
    name: str | None = None
