"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Calendarium happen here. No module should
call os.getenv() or os.environ.get() directly; import get_settings() instead.
The gateway, the account service and the events service all read the same
Settings class; each process simply ignores the fields it does not use.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. redis_url -> REDIS_URL). Type coercion and validation are built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Out-of-range cost factors, timeouts and
      rate-limit parameters are a hard startup failure.

Timeouts: every blocking I/O point has one. Store bootstrap ping 5s, per-request
IsAuth RPC 1s, database queries 3s. Nothing is allowed to block indefinitely.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
account/, or events/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("calendarium.config")

_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    sanity rules at startup.

    Environment variable name mapping: field names are uppercased automatically.
    E.g. `bcrypt_rounds` reads from BCRYPT_ROUNDS, `debug` reads from DEBUG.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Session store (Redis)
    # ------------------------------------------------------------------

    redis_url: str = "redis://localhost:6379/0"
    # Empty string means "no AUTH". Only used when redis_url carries no password.
    redis_password: str = ""
    store_ping_timeout: float = 5.0
    store_op_timeout: float = 3.0

    # ------------------------------------------------------------------
    # Tokens and passwords
    # ------------------------------------------------------------------

    # 60 minutes. The session store TTL is derived from the token expiry.
    session_ttl_seconds: int = 3600
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    auth_db_url: str = f"sqlite:///{_ROOT / 'auth' / 'calendarium_auth.db'}"
    events_db_url: str = f"sqlite:///{_ROOT / 'events' / 'calendarium_events.db'}"
    db_timeout: float = 3.0

    # ------------------------------------------------------------------
    # Service-to-service RPC
    # ------------------------------------------------------------------

    account_service_url: str = "http://localhost:8083"
    events_service_url: str = "http://localhost:8082"
    auth_rpc_timeout: float = 1.0
    rpc_timeout: float = 5.0
    bootstrap_timeout: float = 5.0

    # ------------------------------------------------------------------
    # Rate limiting (gateway edge)
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True
    rate_limit_capacity: int = 4
    rate_limit_refill_per_second: float = 2.0
    rate_limit_sweep_interval: float = 60.0
    rate_limit_idle_seconds: float = 180.0
    # Peers allowed to set X-Forwarded-For / X-Real-IP. Single IPs or CIDR blocks.
    trusted_proxies: list[str] = []

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["http://localhost:8080", "http://127.0.0.1:8080"]
    allowed_hosts: list[str] = ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_ranges(self) -> "Settings":
        """Reject values that would silently weaken or wedge the service.

        bcrypt accepts cost factors 4..31; anything else is a configuration
        mistake, not a tuning choice. Timeouts of zero or less would turn
        every store/RPC call into an immediate failure, and a non-positive
        bucket capacity or refill rate would reject all traffic.
        """
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.session_ttl_seconds <= 0:
            raise ValueError("SESSION_TTL_SECONDS must be positive.")
        timeouts = {
            "STORE_PING_TIMEOUT": self.store_ping_timeout,
            "STORE_OP_TIMEOUT": self.store_op_timeout,
            "DB_TIMEOUT": self.db_timeout,
            "AUTH_RPC_TIMEOUT": self.auth_rpc_timeout,
            "RPC_TIMEOUT": self.rpc_timeout,
            "BOOTSTRAP_TIMEOUT": self.bootstrap_timeout,
        }
        for name, value in timeouts.items():
            if value <= 0:
                raise ValueError(f"{name} must be positive.")
        if self.rate_limit_capacity < 1 or self.rate_limit_refill_per_second <= 0:
            raise ValueError("Rate limit capacity and refill rate must be positive.")
        if self.rate_limit_sweep_interval <= 0 or self.rate_limit_idle_seconds <= 0:
            raise ValueError("Rate limit sweep interval and idle threshold must be positive.")
        if self.debug:
            logger.warning("DEBUG mode enabled -- do not run this configuration in production.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    Uses lru_cache so Settings() is instantiated exactly once, at first call.
    All modules should call get_settings() rather than constructing Settings() directly.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
