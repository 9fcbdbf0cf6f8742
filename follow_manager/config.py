"""
follow_manager/config.py

Configuração via Dynaconf (settings.toml, .secrets.toml, .env e variáveis
de ambiente com prefixo FOLLOW_MANAGER_).

Os validators só definem valores padrão: cada fronteira HTTP monta a sua
configuração de runtime com os loaders abaixo, que levantam `ConfigError`
antes de qualquer chamada ao Discord.
"""

from dataclasses import dataclass

from dynaconf import Dynaconf, Validator

DEFAULT_DISCORD_API_BASE_URL = "https://discord.com/api/v10"

settings = Dynaconf(
    settings_files=["settings.toml", ".secrets.toml"],
    environments=True,
    env_switcher="ENV_FOR_DYNACONF",
    envvar_prefix="FOLLOW_MANAGER",
    load_dotenv=True,
    validators=[
        Validator(
            "DISCORD_BOT_TOKEN",
            "DISCORD_GUILD_ID",
            "SUPABASE_URL",
            "SUPABASE_ANON_KEY",
            "SERVICE_ROLE_KEY",
            default="",
        ),
        Validator("DISCORD_API_BASE_URL", default=DEFAULT_DISCORD_API_BASE_URL),
        Validator("ALLOWED_USER_IDS", "ALLOWED_ORIGINS", default=[]),
        Validator("DATABASE_URL", default="sqlite+aiosqlite:///./follow_manager.db"),
    ],
)


class ConfigError(Exception):
    """Configuração obrigatória ausente. A mensagem é exibida ao chamador."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class DiscordConfig:
    bot_token: str
    guild_id: str
    api_base_url: str


@dataclass(frozen=True)
class LiveFetchConfig:
    discord: DiscordConfig
    allowed_user_ids: tuple[str, ...]
    allowed_origins: tuple[str, ...]


@dataclass(frozen=True)
class IdentityConfig:
    supabase_url: str
    supabase_anon_key: str


@dataclass(frozen=True)
class SyncConfig:
    discord: DiscordConfig
    service_role_key: str


def parse_csv(value) -> list[str]:
    """
    Aceita lista (settings.toml) ou string separada por vírgulas (env var).
    Entradas vazias são descartadas.
    """
    if not value:
        return []
    if isinstance(value, str):
        entries = value.split(",")
    else:
        entries = [str(entry) for entry in value]
    return [entry.strip() for entry in entries if entry.strip()]


def _text(key: str) -> str:
    return str(settings.get(key) or "").strip()


def load_discord_config() -> DiscordConfig:
    bot_token = _text("DISCORD_BOT_TOKEN")
    guild_id = _text("DISCORD_GUILD_ID")

    if not bot_token:
        raise ConfigError("Missing FOLLOW_MANAGER_DISCORD_BOT_TOKEN.")
    if not guild_id:
        raise ConfigError("Missing FOLLOW_MANAGER_DISCORD_GUILD_ID.")

    return DiscordConfig(
        bot_token=bot_token,
        guild_id=guild_id,
        api_base_url=_text("DISCORD_API_BASE_URL") or DEFAULT_DISCORD_API_BASE_URL,
    )


def load_live_fetch_config() -> LiveFetchConfig:
    discord = load_discord_config()
    allowed_user_ids = parse_csv(settings.get("ALLOWED_USER_IDS"))

    if not allowed_user_ids:
        raise ConfigError("Missing FOLLOW_MANAGER_ALLOWED_USER_IDS.")

    return LiveFetchConfig(
        discord=discord,
        allowed_user_ids=tuple(allowed_user_ids),
        allowed_origins=tuple(parse_csv(settings.get("ALLOWED_ORIGINS"))),
    )


def load_identity_config() -> IdentityConfig:
    supabase_url = _text("SUPABASE_URL")
    supabase_anon_key = _text("SUPABASE_ANON_KEY")

    if not supabase_url or not supabase_anon_key:
        raise ConfigError(
            "Missing FOLLOW_MANAGER_SUPABASE_URL or FOLLOW_MANAGER_SUPABASE_ANON_KEY."
        )

    return IdentityConfig(supabase_url=supabase_url, supabase_anon_key=supabase_anon_key)


def load_sync_config() -> SyncConfig:
    discord = load_discord_config()
    service_role_key = _text("SERVICE_ROLE_KEY")

    if not service_role_key:
        raise ConfigError("Missing FOLLOW_MANAGER_SERVICE_ROLE_KEY.")

    return SyncConfig(discord=discord, service_role_key=service_role_key)
