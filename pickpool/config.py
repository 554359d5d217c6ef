import os
import re
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

DEFAULT_MEMBERS = (
    "Hiatt", "Caden", "Bennett", "Ryan", "William",
    "Ian", "Mason", "Tim", "Drew", "Ben",
)

DEFAULT_TOURNAMENTS = (
    "Genesis", "Genesis", "Cognizant", "API", "Players", "Valspar", "Houston", "Valero",
    "Masters", "Heritage", "Cadillac", "Truist", "PGA", "Byron Nelson", "Schwab",
    "Memorial", "Canadian", "US Open", "Travelers", "John Deere", "Scottish",
    "The Open", "3M", "Rocket", "Wyndham",
)

REVEAL_MODES = ("weekly", "deadline")

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./pickpool.db"


def _to_int(value: str, key_name: str, low: int, high: int) -> int:
    try:
        n = int(value)
    except ValueError as e:
        raise RuntimeError(f"Invalid integer for {key_name}: {value!r}") from e
    if not low <= n <= high:
        raise RuntimeError(f"{key_name} must be in {low}..{high}, got {n}")
    return n


def _parse_name_list(raw: str | None, key_name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Comma or newline separated names. Whitespace inside a name is kept
    ("Byron Nelson"), surrounding whitespace is not.
    """
    if raw is None or not raw.strip():
        return default

    names = tuple(p.strip() for p in re.split(r"[,\n]+", raw) if p.strip())
    if not names:
        raise RuntimeError(f"{key_name} must list at least one name")
    return names


@dataclass(frozen=True, slots=True)
class PoolConfig:
    admin_key: Optional[str] = None
    database_url: str = DEFAULT_DATABASE_URL

    timezone: str = "America/New_York"
    members: tuple[str, ...] = DEFAULT_MEMBERS
    tournaments: tuple[str, ...] = DEFAULT_TOURNAMENTS

    # Defaults written into the stored settings on first bootstrap.
    # Day of week: 0=Sunday ... 6=Saturday.
    reveal_mode: str = "weekly"
    reveal_dow: int = 3
    reveal_hour: int = 21
    reveal_minute: int = 0

    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def season_length(self) -> int:
        return len(self.tournaments)

    def tournament_for(self, week: int) -> str:
        if 1 <= week <= len(self.tournaments):
            return self.tournaments[week - 1]
        return f"Week {week}"

    @classmethod
    def load(cls) -> "PoolConfig":
        """
        Loads from process env (and .env if present).
        Malformed values fail fast with the offending variable named.
        """
        load_dotenv()
        env = os.environ

        admin_key = (env.get("ADMIN_KEY") or "").strip() or None
        database_url = (env.get("DATABASE_URL") or DEFAULT_DATABASE_URL).strip()
        timezone = (env.get("POOL_TIMEZONE") or "America/New_York").strip()

        reveal_mode = (env.get("REVEAL_MODE") or "weekly").strip().lower()
        if reveal_mode not in REVEAL_MODES:
            raise RuntimeError(f"REVEAL_MODE must be one of {', '.join(REVEAL_MODES)}, got {reveal_mode!r}")

        reveal_dow = _to_int(env.get("REVEAL_DOW") or "3", "REVEAL_DOW", 0, 6)
        reveal_hour = _to_int(env.get("REVEAL_HOUR") or "21", "REVEAL_HOUR", 0, 23)
        reveal_minute = _to_int(env.get("REVEAL_MINUTE") or "0", "REVEAL_MINUTE", 0, 59)

        return cls(
            admin_key=admin_key,
            database_url=database_url,
            timezone=timezone,
            members=_parse_name_list(env.get("POOL_MEMBERS"), "POOL_MEMBERS", DEFAULT_MEMBERS),
            tournaments=_parse_name_list(env.get("TOURNAMENTS"), "TOURNAMENTS", DEFAULT_TOURNAMENTS),
            reveal_mode=reveal_mode,
            reveal_dow=reveal_dow,
            reveal_hour=reveal_hour,
            reveal_minute=reveal_minute,
            cors_origins=_parse_name_list(env.get("CORS_ORIGINS"), "CORS_ORIGINS", ("*",)),
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
        )
