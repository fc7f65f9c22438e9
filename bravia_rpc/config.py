"""
Bravia RPC - Configuration

Loads client configuration from environment variables, ``.env`` or a YAML file.
"""

from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

logger = structlog.get_logger(__name__)

DEFAULT_SERVICES = ",".join([
    "accessControl",
    "appControl",
    "audio",
    "avContent",
    "browser",
    "cec",
    "encryption",
    "guide",
    "recording",
    "system",
    "videoScreen",
])


class Settings(BaseSettings):
    """Client settings loaded from environment."""

    # Device
    host: Optional[str] = Field(default=None, alias="BRAVIA_HOST")
    port: int = Field(default=80, alias="BRAVIA_PORT")
    timeout: float = Field(default=5.0, alias="BRAVIA_TIMEOUT")
    services: str = Field(default=DEFAULT_SERVICES, alias="BRAVIA_SERVICES")

    # Authentication (PSK wins over PIN session when both are set)
    name: str = Field(default="bravia-rpc", alias="BRAVIA_NAME")
    psk: Optional[str] = Field(default=None, alias="BRAVIA_PSK")
    token: Optional[str] = Field(default=None, alias="BRAVIA_TOKEN")
    token_expires: Optional[str] = Field(default=None, alias="BRAVIA_TOKEN_EXPIRES")

    # Logging
    log_level: str = Field(default="INFO", alias="BRAVIA_LOG_LEVEL")

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}/sony"

    @property
    def use_psk(self) -> bool:
        return bool(self.psk)

    @property
    def services_list(self) -> List[str]:
        """Parse endpoint names from comma-separated string."""
        if not self.services:
            return []
        return [s.strip() for s in self.services.split(",") if s.strip()]

    @classmethod
    def from_yaml(cls, config_path: str) -> "Settings":
        """Load settings from a YAML mapping keyed by field name."""
        path = Path(config_path)
        if not path.exists():
            logger.warning("Config file not found, using environment and defaults", path=config_path)
            return cls()

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if isinstance(data.get("services"), list):
            data["services"] = ",".join(data["services"])

        logger.info("Configuration loaded", path=config_path)
        return cls(**data)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True
        extra = "ignore"
