"""Configuration management for Agenda."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from .core.expansion import DEFAULT_MAX_ITERATIONS

logger = logging.getLogger(__name__)

AGENDA_HOME = Path(os.environ.get("AGENDA_HOME", Path.home() / "agenda"))
CONFIG_FILE = AGENDA_HOME / "config" / "agenda.conf"
DATA_DIR = AGENDA_HOME / "data"

# Python weekday numbering (0=Monday..6=Sunday)
_DAY_NAMES = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


@dataclass
class Config:
    """Agenda configuration."""

    data_file: str = ""
    user_id: str = ""
    week_start_day: str = "Sunday"
    expansion_cap: int = DEFAULT_MAX_ITERATIONS
    upcoming_days: int = 7
    categories: list[str] = field(default_factory=list)

    @property
    def data_path(self) -> Path:
        """Resolved path of the item store."""
        if self.data_file:
            return Path(self.data_file).expanduser()
        return DATA_DIR / "items.json"

    @property
    def week_start_index(self) -> int:
        """Configured first day of the week as a Python weekday."""
        try:
            return _DAY_NAMES.index(self.week_start_day.strip().lower())
        except ValueError:
            logger.warning(f"Unknown WEEK_START_DAY {self.week_start_day!r}, using Sunday")
            return 6


def _parse_positive_int(key: str, value: str, default: int) -> int:
    try:
        parsed = int(value)
    except ValueError:
        logger.warning(f"Invalid {key.upper()} value {value!r}, using {default}")
        return default
    if parsed < 1:
        logger.warning(f"{key.upper()} must be positive, got {parsed}, using {default}")
        return default
    return parsed


def load_config(path: Path | None = None) -> Config:
    """Load configuration from agenda.conf file."""
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
        value = value.strip()

        # Handle quoted values with inline comments: "value" # comment
        if value.startswith('"') or value.startswith("'"):
            quote = value[0]
            end_quote = value.find(quote, 1)
            value = value[1:end_quote] if end_quote != -1 else value[1:]
        elif "#" in value:
            # Unquoted: strip inline comments
            value = value.split("#")[0].strip()

        match key:
            case "data_file":
                config.data_file = value
            case "user_id":
                config.user_id = value
            case "week_start_day":
                config.week_start_day = value
            case "expansion_cap":
                config.expansion_cap = _parse_positive_int(key, value, DEFAULT_MAX_ITERATIONS)
            case "upcoming_days":
                config.upcoming_days = _parse_positive_int(key, value, 7)
            case "categories":
                config.categories = [c.strip() for c in value.split(",") if c.strip()]
            case _:
                logger.warning(f"Unknown config key {key.upper()} in {path}")

    return config
