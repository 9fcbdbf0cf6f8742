"""
follow_manager/services/errors.py

Mapeamento único de falhas do Discord para a resposta ao chamador.
Usado tanto pela busca ao vivo quanto pelo sync do snapshot.
"""

ACCESS_FAILED_MESSAGE = (
    "Discord access failed. Verify FOLLOW_MANAGER_DISCORD_BOT_TOKEN, "
    "FOLLOW_MANAGER_DISCORD_GUILD_ID, and bot permissions."
)
RATE_LIMITED_MESSAGE = "Discord rate limit reached. Retry shortly."


def map_discord_error(status: int) -> tuple[str, int]:
    """
    Recebe o status HTTP do Discord e retorna `(mensagem, status de saída)`.

    - 401/403/404 → 400: credencial, guild ou permissão do bot
    - 429         → 429: rate limit, o chamador deve tentar de novo depois
    - demais      → 502: erro do upstream
    """
    if status in (401, 403, 404):
        return ACCESS_FAILED_MESSAGE, 400

    if status == 429:
        return RATE_LIMITED_MESSAGE, 429

    return f"Discord API error ({status}).", 502
