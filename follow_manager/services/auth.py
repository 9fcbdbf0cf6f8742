import logging

import httpx

from follow_manager.config import IdentityConfig

log = logging.getLogger(__name__)


async def fetch_user(authorization: str, config: IdentityConfig) -> dict | None:
    """
    Valida o token do chamador no Supabase Auth (GET /auth/v1/user).
    Retorna o usuário autenticado ou None se o token for recusado.
    """
    try:
        async with httpx.AsyncClient() as client:
            resp = await client.get(
                f"{config.supabase_url.rstrip('/')}/auth/v1/user",
                headers={
                    "apikey": config.supabase_anon_key,
                    "Authorization": authorization,
                },
                timeout=15,
            )
    except httpx.HTTPError as e:
        log.warning(f"Falha ao consultar o provedor de identidade: {e}")
        return None

    if resp.status_code != 200:
        return None

    try:
        user = resp.json()
    except ValueError:
        return None

    if not isinstance(user, dict) or not user.get("id"):
        return None
    return user
