"""
Centralized configuration for the Column Golf server.

Configuration is loaded from (in order of precedence):
1. Environment variables
2. .env file (if exists)
3. Default values

Usage:
    from config import config
    print(config.PORT)
    print(config.game_defaults.game_over_threshold)
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)


def get_env(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.environ.get(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    val = os.environ.get(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    if val in ("false", "0", "no", "off"):
        return False
    return default


def get_env_int(key: str, default: int = 0) -> int:
    """Get integer environment variable."""
    try:
        return int(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_float(key: str, default: float = 0.0) -> float:
    """Get float environment variable."""
    try:
        return float(os.environ.get(key, str(default)))
    except ValueError:
        return default


def get_env_list(key: str, default: list[str]) -> list[str]:
    """Get comma-separated list environment variable."""
    raw = os.environ.get(key)
    if raw is None:
        return list(default)
    items = [item.strip() for item in raw.split(",") if item.strip()]
    return items or list(default)


@dataclass
class GameDefaults:
    """Default table settings."""
    game_over_threshold: int = 100
    initial_flips: int = 2
    human_player_name: str = "You"
    cpu_player_names: list[str] = field(default_factory=lambda: ["Billy", "Bobby", "Buddy"])


@dataclass
class CPUTiming:
    """Presentation pacing for computer turns (seconds). Zero disables the pause."""
    pacing_delay: float = 0.4
    thinking_delay: float = 1.0


@dataclass
class ServerConfig:
    """Server configuration."""
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Verbose per-decision logging for computer players
    AI_DEBUG: bool = False

    # Prefix for image references handed out by the local card source
    CARD_IMAGE_BASE: str = "/images/cards"

    # Concurrent websocket tables
    MAX_SESSIONS: int = 50

    game_defaults: GameDefaults = field(default_factory=GameDefaults)
    cpu_timing: CPUTiming = field(default_factory=CPUTiming)

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Load configuration from environment variables."""
        defaults = GameDefaults()
        return cls(
            HOST=get_env("HOST", "0.0.0.0"),
            PORT=get_env_int("PORT", 8000),
            DEBUG=get_env_bool("DEBUG", False),
            LOG_LEVEL=get_env("LOG_LEVEL", "INFO"),
            ENVIRONMENT=get_env("ENVIRONMENT", "development"),
            AI_DEBUG=get_env_bool("AI_DEBUG", False),
            CARD_IMAGE_BASE=get_env("CARD_IMAGE_BASE", "/images/cards"),
            MAX_SESSIONS=get_env_int("MAX_SESSIONS", 50),
            game_defaults=GameDefaults(
                game_over_threshold=get_env_int("GAME_OVER_THRESHOLD", 100),
                initial_flips=get_env_int("INITIAL_FLIPS", 2),
                human_player_name=get_env("HUMAN_PLAYER_NAME", "You"),
                cpu_player_names=get_env_list("CPU_PLAYER_NAMES", defaults.cpu_player_names),
            ),
            cpu_timing=CPUTiming(
                pacing_delay=get_env_float("CPU_PACING_DELAY", 0.4),
                thinking_delay=get_env_float("CPU_THINKING_DELAY", 1.0),
            ),
        )


# Global config instance - loaded once at module import
config = ServerConfig.from_env()


def reload_config() -> ServerConfig:
    """Reload configuration from environment (useful for testing)."""
    global config
    config = ServerConfig.from_env()
    return config
