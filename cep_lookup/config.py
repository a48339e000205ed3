"""Configuration for the CEP lookup service."""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


_ROOT = Path(__file__).parent.parent


class RacePolicy(str, Enum):
    # Take the first message delivered, success or failure
    FIRST_ARRIVAL = "first_arrival"
    # Wait for a success unless every provider failed
    FIRST_SUCCESS = "first_success"


DEFAULT_RACE_POLICY = RacePolicy.FIRST_ARRIVAL


@dataclass
class Config:
    # Upstream URL templates ({cep} is substituted verbatim)
    brasilapi_url: str = "https://brasilapi.com.br/api/cep/v1/{cep}"
    viacep_url: str = "https://viacep.com.br/ws/{cep}/json/"

    # Race budget per request (seconds)
    race_timeout_s: float = 1.0
    race_policy: RacePolicy = DEFAULT_RACE_POLICY

    # httpx client timeout; the race deadline is always tighter
    http_timeout_s: float = 5.0
    user_agent: str = "cep-lookup/1.0"

    # Server
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, env_path: Path = _ROOT / ".env") -> "Config":
        """Build a Config from PORT / LOG_LEVEL, loading .env if present."""
        if env_path.exists():
            for line in env_path.read_text().splitlines():
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, val = line.split("=", 1)
                    os.environ.setdefault(key.strip(), val.strip())

        config = cls()
        port = os.environ.get("PORT", "")
        if port:
            config.port = int(port)
        log_level = os.environ.get("LOG_LEVEL", "")
        if log_level:
            config.log_level = log_level.upper()
        return config
