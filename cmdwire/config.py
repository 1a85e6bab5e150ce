"""Configuration management for cmdwire.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a Config object. Property getters provide safe access with
sensible defaults for the dispatchers, module loading and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = structlog.get_logger("cmdwire.config")


class Config:
    """Central configuration manager for cmdwire.

    Loads settings.yaml and .env from the config directory. Read-only
    after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = Path(config_dir)

        env_file = self.config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def validate(self):
        """Validate settings at startup.

        Raises:
            ConfigurationError: On the first setting with an invalid type.
        """
        if not isinstance(self.settings.get("owners", []), list):
            raise ConfigurationError(
                "owners must be a list of actor ids", setting_name="owners",
            )
        guilds = self.settings.get("slash_guild_ids")
        if guilds is not None and not isinstance(guilds, list):
            raise ConfigurationError(
                "slash_guild_ids must be a list", setting_name="slash_guild_ids",
            )
        allowlist = self.settings.get("module_allowlist")
        if allowlist is not None and not isinstance(allowlist, list):
            raise ConfigurationError(
                "module_allowlist must be a list", setting_name="module_allowlist",
            )
        if not self.prefix:
            raise ConfigurationError("prefix must not be empty", setting_name="prefix")
        if not self.owners:
            logger.warning("no_owners_configured", msg="Owner-only commands will always fail")

    @property
    def prefix(self) -> str:
        """Command prefix. Env var CMDWIRE_PREFIX takes precedence."""
        return os.environ.get("CMDWIRE_PREFIX") or str(self.settings.get("prefix", "!"))

    @property
    def owners(self) -> List[str]:
        """Actor ids allowed to run owner-only commands."""
        owners = self.settings.get("owners", [])
        if not isinstance(owners, list):
            logger.error("owners_invalid_type", type=type(owners).__name__)
            return []
        return [str(o) for o in owners]

    @property
    def client_id(self) -> Optional[str]:
        """The bot's own actor id. Env var CMDWIRE_CLIENT_ID takes precedence."""
        value = os.environ.get("CMDWIRE_CLIENT_ID") or self.settings.get("client_id")
        return str(value) if value is not None else None

    @property
    def allow_self(self) -> bool:
        """Process messages the bot sent itself (default False)."""
        return bool(self.settings.get("commands", {}).get("allow_self", False))

    @property
    def allow_bots(self) -> bool:
        """Process messages sent by other bots (default False)."""
        return bool(self.settings.get("commands", {}).get("allow_bots", False))

    @property
    def slash_guild_ids(self) -> Optional[List[str]]:
        """Guilds slash commands are served in. None serves every guild."""
        guilds = self.settings.get("slash_guild_ids")
        if guilds is None:
            return None
        return [str(g) for g in guilds]

    @property
    def modules_dir(self) -> Path:
        """Directory scanned for <name>/module.py command modules."""
        configured = self.settings.get("modules_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "modules"

    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"dispatch": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)


_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
