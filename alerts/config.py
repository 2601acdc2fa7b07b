"""
⚙️ Config - YAML configuration for StreamAlerts

    twitch:   credentials (client_id + client_secret, or a user token)
    alerts:   streamers to monitor and poll timings
    storage:  optional SQLite file for the registry

A missing config file is created with defaults so the operator only has to
fill it in.
"""
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from alerts.errors import ConfigError
from alerts.rate_limiter import MIN_REQUEST_INTERVAL
from alerts.scheduler import DEFAULT_CYCLE_DELAY, DEFAULT_RECHECK_INTERVAL

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/alerts.yaml"


@dataclass
class AlertsConfig:
    """Parsed configuration."""
    streamers: List[str] = field(default_factory=list)
    cycle_delay: float = DEFAULT_CYCLE_DELAY
    recheck_interval: float = DEFAULT_RECHECK_INTERVAL
    helix_timeout: float = 8.0
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    token: Optional[str] = None
    refresh_token: Optional[str] = None
    db_path: Optional[str] = None

    # Platform floor, not configurable
    min_interval: float = field(default=MIN_REQUEST_INTERVAL, init=False)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AlertsConfig":
        data = data or {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be a mapping, got {type(data).__name__}")

        twitch = data.get("twitch") or {}
        alerts = data.get("alerts") or {}
        storage = data.get("storage") or {}

        streamers = alerts.get("streamers") or []
        if not isinstance(streamers, list):
            raise ConfigError("alerts.streamers must be a list of logins")

        try:
            cycle_delay = float(alerts.get("cycle_delay", DEFAULT_CYCLE_DELAY))
            recheck_interval = float(alerts.get("recheck_interval", DEFAULT_RECHECK_INTERVAL))
            helix_timeout = float(alerts.get("helix_timeout", 8.0))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid timing in alerts section: {e}") from e

        if cycle_delay < MIN_REQUEST_INTERVAL:
            LOGGER.warning(f"⚠️ cycle_delay {cycle_delay}s raised to {MIN_REQUEST_INTERVAL}s")
            cycle_delay = MIN_REQUEST_INTERVAL
        if recheck_interval < 0 or helix_timeout <= 0:
            raise ConfigError("recheck_interval must be >= 0 and helix_timeout > 0")

        logins = []
        for index, login in enumerate(streamers):
            # YAML reads a numeric login as int
            if isinstance(login, bool) or not isinstance(login, (str, int)) or not str(login).strip():
                raise ConfigError(f"alerts.streamers[{index}] is not a valid login: {login!r}")
            logins.append(str(login).strip())

        return cls(
            streamers=logins,
            cycle_delay=cycle_delay,
            recheck_interval=recheck_interval,
            helix_timeout=helix_timeout,
            client_id=twitch.get("client_id") or None,
            client_secret=twitch.get("client_secret") or None,
            token=twitch.get("token") or None,
            refresh_token=twitch.get("refresh_token") or None,
            db_path=storage.get("db_path") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "twitch": {
                "client_id": self.client_id or "",
                "client_secret": self.client_secret or "",
                "token": self.token or "",
                "refresh_token": self.refresh_token or "",
            },
            "alerts": {
                "streamers": list(self.streamers),
                "cycle_delay": self.cycle_delay,
                "recheck_interval": self.recheck_interval,
                "helix_timeout": self.helix_timeout,
            },
            "storage": {
                "db_path": self.db_path,
            },
        }

    def validate(self):
        """Raise ConfigError if the credentials cannot authenticate."""
        if not self.client_id:
            raise ConfigError("Missing twitch.client_id in config file")
        if not self.client_secret and not self.token:
            raise ConfigError("Missing twitch.client_secret or twitch.token in config file")


def write_config(config: AlertsConfig, config_path: str = DEFAULT_CONFIG_PATH):
    """Write the config as YAML (creates parent directories)."""
    config_file = Path(config_path)
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False, allow_unicode=True)
    LOGGER.info(f"📝 Config written to {config_file}")


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> AlertsConfig:
    """
    Load the YAML config, writing defaults first if the file is missing.

    Raises:
        ConfigError: unreadable YAML or invalid values
    """
    config_file = Path(config_path)
    if not config_file.exists():
        LOGGER.warning(f"⚠️ Config file {config_path} not found, writing defaults")
        write_config(AlertsConfig(), config_path)

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {config_path}: {e}") from e

    return AlertsConfig.from_dict(data)
