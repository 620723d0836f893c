"""
Configuration management for casino-client.
Supports config.json with environment variable overrides.
All paths are resolved relative to the project root.
"""

import json
import os
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field

from dotenv import load_dotenv

load_dotenv()

# Project root directory (parent of 'casino_client' folder)
PROJECT_ROOT = Path(__file__).parent.parent


def get_env(key: str, default: str = None) -> Optional[str]:
    """Get environment variable with optional default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.lower() in ("true", "1", "yes", "on")


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


# ==================== Configuration Models ====================

class ApiConfig(BaseModel):
    base_url: str = "http://localhost:8000/api"
    timeout: float = 15.0  # seconds, handed to httpx


class BettingConfig(BaseModel):
    min_bet: int = 1
    presets: List[int] = Field(default_factory=lambda: [10, 50, 100, 500])


class CoinRequestConfig(BaseModel):
    min_amount: int = 100
    default_amount: int = 1000
    presets: List[int] = Field(default_factory=lambda: [500, 1000, 2000])
    bankruptcy_amount: int = 1000
    bankruptcy_reason: str = "I lost all my coins and want to try again."


class LoggingConfig(BaseModel):
    level: str = "INFO"
    log_to_file: bool = False
    formatter: str = "color"


class PathsConfig(BaseModel):
    """All paths are relative to PROJECT_ROOT."""
    credentials_file: str = "data/credentials.json"
    log_file: str = "data/client.log"

    def get_credentials_path(self) -> Path:
        return PROJECT_ROOT / self.credentials_file

    def get_log_path(self) -> Path:
        return PROJECT_ROOT / self.log_file


class AppConfig(BaseModel):
    """Main client configuration."""
    api: ApiConfig = Field(default_factory=ApiConfig)
    betting: BettingConfig = Field(default_factory=BettingConfig)
    coin_requests: CoinRequestConfig = Field(default_factory=CoinRequestConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)


# ==================== Configuration Loading ====================

def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load configuration from config.json with environment variable overrides.
    Environment variables take precedence over config.json values.
    """
    config_path = config_path or PROJECT_ROOT / "config.json"

    data = {}

    if config_path.exists():
        with open(config_path, "r") as f:
            data = json.load(f)

    if get_env("CASINO_API_URL"):
        data.setdefault("api", {})["base_url"] = get_env("CASINO_API_URL")
    if get_env("CASINO_API_TIMEOUT"):
        data.setdefault("api", {})["timeout"] = get_env_float("CASINO_API_TIMEOUT", 15.0)

    if get_env("CASINO_CREDENTIALS_FILE"):
        data.setdefault("paths", {})["credentials_file"] = get_env("CASINO_CREDENTIALS_FILE")

    if get_env("LOG_LEVEL"):
        data.setdefault("logging", {})["level"] = get_env("LOG_LEVEL")
    if get_env("LOG_TO_FILE"):
        data.setdefault("logging", {})["log_to_file"] = get_env_bool("LOG_TO_FILE")
    if get_env("LOG_FORMATTER"):
        data.setdefault("logging", {})["formatter"] = get_env("LOG_FORMATTER")

    return AppConfig(**data)


def save_config(config: AppConfig, config_path: Optional[Path] = None):
    """Save configuration to config.json."""
    config_path = config_path or PROJECT_ROOT / "config.json"

    # Paths are computed locally, not persisted
    data = config.model_dump(exclude={"paths"})

    with open(config_path, "w") as f:
        json.dump(data, f, indent=4)


# Global config instance
settings = load_config()
