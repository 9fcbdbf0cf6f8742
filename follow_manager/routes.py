"""
follow_manager/routes.py

Registra as rotas HTTP do follow manager no app FastAPI.

Rotas:
- /follow-manager                  → inventário ao vivo (usuário autenticado)
- /follow-manager/snapshot         → inventário a partir do snapshot persistido
- /sync-follow-manager-inventory   → substitui o snapshot (somente service role)

Toda falha vira `{"error": "..."}` com o status adequado. Acesso e
configuração são checados antes de qualquer chamada ao Discord.
"""

import logging

import httpx
from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from follow_manager import database
from follow_manager.access import (
    bearer_token,
    build_cors_headers,
    decode_jwt_role,
    is_service_token,
    resolve_allowed_origin,
)
from follow_manager.config import (
    ConfigError,
    LiveFetchConfig,
    load_identity_config,
    load_live_fetch_config,
    load_sync_config,
)
from follow_manager.models.inventory import SourceGuildInventory
from follow_manager.services.auth import fetch_user
from follow_manager.services.discord import DiscordRequestError, fetch_guild_records
from follow_manager.services.errors import map_discord_error
from follow_manager.services.inventory import build_inventory
from follow_manager.services.snapshot import load_inventory_rows, rows_to_inventory
from follow_manager.services.sync import run_sync
from follow_manager.services.views import filter_groups, group_by_source_guild

log = logging.getLogger(__name__)

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Falhas que não são respostas HTTP do Discord: transporte ou corpo malformado
UPSTREAM_FAILURES = (httpx.HTTPError, ValidationError, ValueError)


def error_response(message: str, status: int, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status, headers=headers)


def discord_error_response(error: DiscordRequestError, headers: dict | None = None) -> JSONResponse:
    log.warning(
        f"Discord falhou: status={error.status}, path={error.path}, "
        f"body={(error.response_body or '')[:500]}"
    )
    message, status = map_discord_error(error.status)
    return error_response(message, status, headers)


class _Gate:
    """Resultado das checagens de acesso das rotas do dashboard."""

    def __init__(self, config: LiveFetchConfig | None, headers: dict, error: Response | None):
        self.config = config
        self.headers = headers
        self.error = error


async def _dashboard_gate(request: Request, allowed_method: str) -> _Gate:
    """
    Sequência de checagens: preflight, método, origem, configuração,
    bearer token, provedor de identidade e allow-list de usuários.
    """
    request_origin = request.headers.get("origin")
    try:
        config = load_live_fetch_config()
        config_error = None
    except ConfigError as e:
        config, config_error = None, e

    allowed_origins = config.allowed_origins if config else ()
    headers = build_cors_headers(request_origin, allowed_origins, f"{allowed_method}, OPTIONS")

    def _deny(message: str, status: int) -> _Gate:
        return _Gate(None, headers, error_response(message, status, headers))

    if request.method == "OPTIONS":
        return _Gate(None, headers, Response("ok", status_code=200, headers=headers))

    if request.method != allowed_method:
        return _deny("Method not allowed.", 405)

    if request_origin and resolve_allowed_origin(request_origin, allowed_origins) is None:
        return _deny("Origin is not allowed.", 403)

    if config_error is not None:
        return _deny(config_error.message, 400)

    authorization = request.headers.get("authorization")
    if bearer_token(authorization) is None:
        return _deny("Missing bearer token.", 401)

    try:
        identity = load_identity_config()
    except ConfigError as e:
        return _deny(e.message, 500)

    user = await fetch_user(authorization, identity)
    if user is None:
        return _deny("Unauthorized.", 401)

    if user["id"] not in config.allowed_user_ids:
        log.info(f"Usuário fora da allow-list: {user['id']}")
        return _deny("Forbidden.", 403)

    return _Gate(config, headers, None)


def register_routes(app) -> None:
    """Chamado em main.py após criar a instância FastAPI."""

    @app.api_route("/follow-manager", methods=ALL_METHODS)
    async def live_inventory(request: Request):
        gate = await _dashboard_gate(request, "POST")
        if gate.error is not None:
            return gate.error

        discord = gate.config.discord
        try:
            records = await fetch_guild_records(discord)
        except DiscordRequestError as e:
            return discord_error_response(e, gate.headers)
        except UPSTREAM_FAILURES as e:
            log.error(f"Erro inesperado ao carregar o inventário: {e}", exc_info=True)
            return error_response(
                "Unexpected error while loading follow inventory.", 502, gate.headers
            )

        inventory = build_inventory(
            discord.guild_id, records.guild, records.webhooks, records.channels
        )
        return JSONResponse(inventory.to_payload(), headers=gate.headers)

    @app.api_route("/follow-manager/snapshot", methods=ALL_METHODS)
    async def snapshot_inventory(
        request: Request,
        view: str = "channel",
        search: str = "",
        session: AsyncSession = Depends(database.get_session),
    ):
        gate = await _dashboard_gate(request, "GET")
        if gate.error is not None:
            return gate.error

        if view not in ("channel", "guild"):
            return error_response("Invalid view. Use 'channel' or 'guild'.", 400, gate.headers)

        try:
            rows = await load_inventory_rows(session)
        except SQLAlchemyError as e:
            log.error(f"Erro ao ler o snapshot: {e}", exc_info=True)
            return error_response("Failed to load follow inventory snapshot.", 500, gate.headers)

        inventory = rows_to_inventory(rows)
        groups = filter_groups(inventory.destination_channels, search)

        if view == "guild":
            payload = SourceGuildInventory(
                guild_id=inventory.guild_id,
                guild_name=inventory.guild_name,
                fetched_at=inventory.fetched_at,
                source_guilds=group_by_source_guild(groups),
            )
        else:
            payload = inventory.model_copy(update={"destination_channels": groups})
        return JSONResponse(payload.to_payload(), headers=gate.headers)

    @app.api_route("/sync-follow-manager-inventory", methods=ALL_METHODS)
    async def sync_inventory(request: Request):
        if request.method != "POST":
            return error_response("Method not allowed.", 405)

        authorization = request.headers.get("authorization")
        if decode_jwt_role(authorization) != "service_role":
            return error_response("Forbidden.", 403)

        try:
            config = load_sync_config()
        except ConfigError as e:
            return error_response(e.message, 500)

        if not is_service_token(authorization, config.service_role_key):
            return error_response("Forbidden.", 403)

        try:
            result = await run_sync(config.discord, database.async_session_factory)
        except DiscordRequestError as e:
            return discord_error_response(e)
        except SQLAlchemyError as e:
            log.error(f"Falha ao substituir o snapshot: {e}", exc_info=True)
            return JSONResponse(
                {
                    "error": "Failed to replace follow inventory snapshot.",
                    "details": str(e),
                },
                status_code=500,
            )
        except UPSTREAM_FAILURES as e:
            log.error(f"Falha inesperada no sync: {e}", exc_info=True)
            return error_response("Unexpected sync failure.", 502)

        return JSONResponse(result.to_payload())
