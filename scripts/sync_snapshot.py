"""
Substitui o snapshot persistido do inventário de follows uma única vez.
Pensado para rodar via cron (sync periódico sem passar pela rota HTTP).
Uso: uv run python scripts/sync_snapshot.py
"""

import asyncio
import logging
import sys

from follow_manager import database
from follow_manager.config import ConfigError, load_discord_config
from follow_manager.services.discord import DiscordRequestError
from follow_manager.services.errors import map_discord_error
from follow_manager.services.sync import run_sync

log = logging.getLogger("sync_snapshot")


async def sync_once() -> int:
    try:
        config = load_discord_config()
    except ConfigError as e:
        log.error(e.message)
        return 1

    await database.init_db()
    try:
        result = await run_sync(config, database.async_session_factory)
    except DiscordRequestError as e:
        message, status = map_discord_error(e.status)
        log.error(f"{message} (status {status}, path {e.path})")
        return 1
    finally:
        await database.engine.dispose()

    print(
        f"✓ guild {result.guild_id}: {result.row_count} follows gravados "
        f"em {result.refreshed_at}."
    )
    return 0


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    sys.exit(asyncio.run(sync_once()))


if __name__ == "__main__":
    main()
