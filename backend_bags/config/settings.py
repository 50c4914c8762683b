"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate required settings (ledger credential, RPC base URL) and provide
  defaults for optional ones.
- Expose a frozen Settings object for the ledger client, claim pipeline,
  rate gate and API server.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field

from backend_bags.config.env import (
    BAGS_API_URL,
    HELIUS_MAINNET_URL,
    MAINNET_RPC_URL,
    build_rpc_url,
    env_float,
    env_int,
    env_list,
    env_str,
)
from backend_bags.core.exceptions import ConfigError

DEFAULT_SIGNATURE_LIMIT = 50
DEFAULT_FETCH_CONCURRENCY = 8
DEFAULT_RPC_TIMEOUT_SEC = 15.0
DEFAULT_RATE_LIMIT_TOTAL = 1000
DEFAULT_RATE_LIMIT_WINDOW_SEC = 24 * 60 * 60
DEFAULT_API_PORT = 3001
DEFAULT_CORS_ORIGINS = ("*",)


@dataclass(frozen=True)
class Settings:
    """Resolved service configuration. Build with get_settings()."""

    helius_api_key: str
    rpc_base_url: str = HELIUS_MAINNET_URL
    public_rpc_url: str = MAINNET_RPC_URL
    bags_api_key: str = ""
    bags_api_url: str = BAGS_API_URL
    signature_limit: int = DEFAULT_SIGNATURE_LIMIT
    fetch_concurrency: int = DEFAULT_FETCH_CONCURRENCY
    rpc_timeout_sec: float = DEFAULT_RPC_TIMEOUT_SEC
    rate_limit_total: int = DEFAULT_RATE_LIMIT_TOTAL
    rate_limit_window_sec: float = DEFAULT_RATE_LIMIT_WINDOW_SEC
    claim_log_markers: tuple[str, ...] = field(default_factory=tuple)
    fee_program_ids: tuple[str, ...] = field(default_factory=tuple)
    api_host: str = "0.0.0.0"
    api_port: int = DEFAULT_API_PORT

    def __post_init__(self) -> None:
        if not self.helius_api_key:
            raise ConfigError("HELIUS_API_KEY is required (ledger node credential)")
        if not self.rpc_base_url:
            raise ConfigError("HELIUS_RPC_URL must be non-empty")
        if not (1 <= self.signature_limit <= 1000):
            raise ConfigError("SIGNATURE_LIMIT must be between 1 and 1000")
        if self.fetch_concurrency < 1:
            raise ConfigError("FETCH_CONCURRENCY must be at least 1")
        if self.rpc_timeout_sec <= 0:
            raise ConfigError("RPC_TIMEOUT_SEC must be positive")
        if self.rate_limit_total < 1 or self.rate_limit_window_sec <= 0:
            raise ConfigError("RATE_LIMIT_TOTAL and RATE_LIMIT_WINDOW_SEC must be positive")

    @property
    def rpc_url(self) -> str:
        """Authenticated ledger node endpoint."""
        return build_rpc_url(self.rpc_base_url, self.helius_api_key)


def load_settings() -> Settings:
    """Read Settings from the environment. Raises ConfigError on missing/invalid values."""
    try:
        return Settings(
            helius_api_key=env_str("HELIUS_API_KEY"),
            rpc_base_url=env_str("HELIUS_RPC_URL", HELIUS_MAINNET_URL),
            public_rpc_url=env_str("SOLANA_PUBLIC_RPC_URL", MAINNET_RPC_URL),
            bags_api_key=env_str("BAGS_API_KEY"),
            bags_api_url=env_str("BAGS_API_URL", BAGS_API_URL),
            signature_limit=env_int("SIGNATURE_LIMIT", DEFAULT_SIGNATURE_LIMIT),
            fetch_concurrency=env_int("FETCH_CONCURRENCY", DEFAULT_FETCH_CONCURRENCY),
            rpc_timeout_sec=env_float("RPC_TIMEOUT_SEC", DEFAULT_RPC_TIMEOUT_SEC),
            rate_limit_total=env_int("RATE_LIMIT_TOTAL", DEFAULT_RATE_LIMIT_TOTAL),
            rate_limit_window_sec=env_float("RATE_LIMIT_WINDOW_SEC", DEFAULT_RATE_LIMIT_WINDOW_SEC),
            claim_log_markers=env_list("CLAIM_LOG_MARKERS"),
            fee_program_ids=env_list("FEE_PROGRAM_IDS"),
            api_host=env_str("API_HOST", "0.0.0.0"),
            api_port=env_int("API_PORT", DEFAULT_API_PORT),
        )
    except ValueError as e:
        raise ConfigError(str(e)) from e


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (cached for the process).

    Tests call get_settings.cache_clear() after changing the environment.
    """
    return load_settings()


def load_cors_origins() -> tuple[str, ...]:
    """
    Allowed browser origins from CORS_ORIGINS (comma-separated, default "*").

    Read on its own because middleware is installed when the app module is
    imported, before the ledger credential is required.
    """
    return env_list("CORS_ORIGINS") or DEFAULT_CORS_ORIGINS
