"""Configuration management for Finire."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

FINIRE_HOME = Path(os.environ.get("FINIRE_HOME", Path.home() / "finire"))
CONFIG_FILE = FINIRE_HOME / "config" / "finire.conf"
DATA_DIR = FINIRE_HOME / "data"

DEFAULT_EMAIL_FROM = "Finire <noreply@finire.app>"
DEFAULT_APP_URL = "https://finire.app"


@dataclass
class Config:
    """Finire configuration."""

    store_backend: str = "file"
    data_dir: str = ""
    user_id: str = ""
    timezone: str = "UTC"
    # Supabase (record store + identity)
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    # Reminder email
    resend_api_key: str = ""
    email_from: str = DEFAULT_EMAIL_FROM
    app_url: str = DEFAULT_APP_URL
    reminder_dedupe: bool = False
    autosave_delay: float = 0.5

    @property
    def data_path(self) -> Path:
        if self.data_dir:
            return Path(self.data_dir).expanduser()
        return DATA_DIR

    def resolve_timezone(self) -> str:
        """Timezone of the acting environment: $TZ if it is an IANA zone, else the configured one."""
        env_tz = os.environ.get("TZ", "").strip().lstrip(":")
        if env_tz and _is_zone(env_tz):
            return env_tz
        if self.timezone and _is_zone(self.timezone):
            return self.timezone
        if self.timezone:
            logger.warning(f"Unknown timezone '{self.timezone}', using UTC")
        return "UTC"


def _is_zone(name: str) -> bool:
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return False
    return True


def _parse_bool(value: str) -> bool | None:
    lowered = value.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    return None


def _strip_value(value: str) -> str:
    # Handle quoted values with inline comments: "value" # comment
    if value.startswith('"') or value.startswith("'"):
        quote = value[0]
        end_quote = value.find(quote, 1)
        return value[1:end_quote] if end_quote != -1 else value[1:]
    # Unquoted: strip inline comments
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from finire.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _strip_value(value.strip())

        match key:
            case "store_backend":
                config.store_backend = value.lower()
            case "data_dir":
                config.data_dir = value
            case "user_id":
                config.user_id = value
            case "timezone":
                config.timezone = value
            case "supabase_url":
                config.supabase_url = value.rstrip("/")
            case "supabase_service_role_key":
                config.supabase_service_role_key = value
            case "resend_api_key":
                config.resend_api_key = value
            case "email_from":
                config.email_from = value
            case "app_url":
                config.app_url = value
            case "reminder_dedupe":
                parsed = _parse_bool(value)
                if parsed is None:
                    logger.warning(f"Invalid REMINDER_DEDUPE value: {value}")
                else:
                    config.reminder_dedupe = parsed
            case "autosave_delay":
                try:
                    config.autosave_delay = float(value)
                except ValueError:
                    logger.warning(f"Invalid AUTOSAVE_DELAY value: {value}")

    return config
