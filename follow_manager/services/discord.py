"""
follow_manager/services/discord.py

Cliente de leitura da API REST do Discord.

`fetch_guild_records()` dispara as três leituras de uma guild (metadados,
webhooks e canais) em paralelo e só retorna quando todas terminam.
Qualquer falha derruba a busca inteira; não há retry nesta camada.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx
from pydantic import TypeAdapter

from follow_manager.config import DiscordConfig
from follow_manager.models.discord import DiscordChannel, DiscordGuild, DiscordWebhook

log = logging.getLogger(__name__)

_webhooks_adapter = TypeAdapter(list[DiscordWebhook])
_channels_adapter = TypeAdapter(list[DiscordChannel])


class DiscordRequestError(Exception):
    """Resposta não-2xx da API do Discord."""

    kind = "discord"

    def __init__(self, status: int, path: str, response_body: str | None = None):
        super().__init__(f"Discord request {path} failed with status {status}")
        self.status = status
        self.path = path
        self.response_body = response_body


@dataclass(frozen=True)
class GuildRecords:
    guild: DiscordGuild
    webhooks: list[DiscordWebhook]
    channels: list[DiscordChannel]


async def request_discord(client: httpx.AsyncClient, config: DiscordConfig, path: str):
    """GET autenticado com o token do bot. Retorna o JSON decodificado."""
    response = await client.get(
        f"{config.api_base_url.rstrip('/')}{path}",
        headers={
            "Authorization": f"Bot {config.bot_token}",
            "Content-Type": "application/json",
        },
    )

    if not response.is_success:
        log.warning(
            f"Discord {path} respondeu {response.status_code}: {response.text[:500]}"
        )
        raise DiscordRequestError(response.status_code, path, response.text)

    return response.json()


async def _gather_all(*coros):
    # Falhou uma, cancela as outras: sem resultado parcial
    tasks = [asyncio.ensure_future(coro) for coro in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def fetch_guild_records(
    config: DiscordConfig,
    client: httpx.AsyncClient | None = None,
) -> GuildRecords:
    """
    Busca metadados, webhooks e canais da guild configurada.

    Levanta `DiscordRequestError` para respostas não-2xx, `httpx.HTTPError`
    para falhas de transporte e `pydantic.ValidationError` para corpos
    malformados.
    """
    guild_id = config.guild_id

    async def _run(http: httpx.AsyncClient) -> list:
        return await _gather_all(
            request_discord(http, config, f"/guilds/{guild_id}"),
            request_discord(http, config, f"/guilds/{guild_id}/webhooks"),
            request_discord(http, config, f"/guilds/{guild_id}/channels"),
        )

    if client is None:
        async with httpx.AsyncClient(timeout=15) as http:
            guild, webhooks, channels = await _run(http)
    else:
        guild, webhooks, channels = await _run(client)

    return GuildRecords(
        guild=DiscordGuild.model_validate(guild),
        webhooks=_webhooks_adapter.validate_python(webhooks),
        channels=_channels_adapter.validate_python(channels),
    )
