"""
Service configuration management.

This module handles loading and accessing service configuration from multiple
sources with a clear priority order:

    1. Environment variables (highest priority) - for containerized deployments
    2. Config file (config/server.ini) - for static deployments
    3. Built-in defaults (lowest priority) - sensible fallbacks

Configuration is loaded once at module import time and cached. The
ServiceConfig dataclass provides typed access to all settings.

Usage:
    from shipment_ledger.config import config

    print(config.server.port)
    print(config.ledger.contract_address)
    print(config.mirror.absolute_path)

Environment Variable Mapping:
    SHIP_HOST                       -> server.host
    SHIP_PORT                       -> server.port
    SHIP_PRODUCTION                 -> security.production
    SHIP_CORS_ORIGINS               -> security.cors_origins
    SHIP_LEDGER_NODE_URL            -> ledger.node_url
    SHIP_CONTRACT_ADDRESS           -> ledger.contract_address
    SHIP_CONTRACT_ABI_PATH          -> ledger.abi_path
    SHIP_LEDGER_GAS_LIMIT           -> ledger.gas_limit
    SHIP_LEDGER_TX_TIMEOUT_SECONDS  -> ledger.tx_timeout_seconds
    SHIP_MIRROR_DB_PATH             -> mirror.path
    SHIP_MIRROR_TIMEOUT_SECONDS     -> mirror.timeout_seconds
    SHIP_LOG_LEVEL                  -> logging.level
    SHIP_LOG_FORMAT                 -> logging.format
"""

import configparser
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

# =============================================================================
# PATH CONFIGURATION
# =============================================================================

# Project root directory (contains src/, config/, data/, build/)
PROJECT_ROOT = Path(__file__).parent.parent.parent

CONFIG_DIR = PROJECT_ROOT / "config"
CONFIG_FILE = CONFIG_DIR / "server.ini"
CONFIG_EXAMPLE = CONFIG_DIR / "server.example.ini"


def _resolve_path(value: str) -> Path:
    """Resolve a possibly-relative path against the project root."""
    p = Path(value)
    if p.is_absolute():
        return p
    return PROJECT_ROOT / p


# =============================================================================
# CONFIGURATION DATACLASSES
# =============================================================================


@dataclass
class ServerSettings:
    """Network server configuration."""

    host: str = "0.0.0.0"  # nosec B104 - intentional for server binding
    port: int = 5001


@dataclass
class SecuritySettings:
    """Security-related configuration."""

    production: bool = False
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:3000"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = field(default_factory=lambda: ["*"])
    cors_allow_headers: list[str] = field(default_factory=lambda: ["*"])
    docs_enabled: Literal["auto", "enabled", "disabled"] = "auto"


@dataclass
class LedgerSettings:
    """Ledger node and contract binding configuration.

    ``contract_address`` has no default: an unset address leaves the service
    running without a ledger binding, and every ledger-backed endpoint answers
    503 until the deployment is fixed.
    """

    node_url: str = "http://127.0.0.1:8545"
    contract_address: str = ""
    abi_path: str = "build/contracts/SupplyChain.json"
    gas_limit: int = 500_000
    request_timeout_seconds: float = 10.0
    tx_timeout_seconds: float = 30.0
    poll_interval_seconds: float = 0.5

    @property
    def absolute_abi_path(self) -> Path:
        """Get absolute path to the contract ABI artifact."""
        return _resolve_path(self.abi_path)


@dataclass
class MirrorSettings:
    """Mirror store (SQLite) configuration."""

    path: str = "data/shipments.db"
    timeout_seconds: float = 2.0

    @property
    def absolute_path(self) -> Path:
        """Get absolute path to the mirror database file."""
        return _resolve_path(self.path)


@dataclass
class LoggingSettings:
    """Logging configuration."""

    level: str = "INFO"
    format: Literal["simple", "detailed", "json"] = "detailed"


@dataclass
class ServiceConfig:
    """
    Complete service configuration.

    This is the main configuration object that aggregates all settings sections.
    Access via the module-level `config` singleton.
    """

    server: ServerSettings = field(default_factory=ServerSettings)
    security: SecuritySettings = field(default_factory=SecuritySettings)
    ledger: LedgerSettings = field(default_factory=LedgerSettings)
    mirror: MirrorSettings = field(default_factory=MirrorSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Convenience property for production mode check."""
        return self.security.production

    @property
    def docs_should_be_enabled(self) -> bool:
        """Determine if API docs should be enabled based on settings."""
        if self.security.docs_enabled == "enabled":
            return True
        if self.security.docs_enabled == "disabled":
            return False
        # "auto" - follow production setting
        return not self.is_production


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================


def _parse_bool(value: str) -> bool:
    """Parse a string value to boolean."""
    return value.lower() in ("true", "yes", "1", "on", "enabled")


def _parse_list(value: str) -> list[str]:
    """Parse a comma-separated string to list, stripping whitespace."""
    if not value or value.strip() == "":
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _load_from_ini(parser: configparser.ConfigParser, cfg: ServiceConfig) -> None:
    """Load configuration from parsed INI file into ServiceConfig."""
    # Server section
    if parser.has_section("server"):
        if parser.has_option("server", "host"):
            cfg.server.host = parser.get("server", "host")
        if parser.has_option("server", "port"):
            cfg.server.port = parser.getint("server", "port")

    # Security section
    if parser.has_section("security"):
        if parser.has_option("security", "production"):
            cfg.security.production = _parse_bool(parser.get("security", "production"))
        if parser.has_option("security", "cors_origins"):
            cfg.security.cors_origins = _parse_list(parser.get("security", "cors_origins"))
        if parser.has_option("security", "cors_allow_credentials"):
            cfg.security.cors_allow_credentials = _parse_bool(
                parser.get("security", "cors_allow_credentials")
            )
        if parser.has_option("security", "docs_enabled"):
            val = parser.get("security", "docs_enabled").lower()
            if val in ("auto", "enabled", "disabled"):
                cfg.security.docs_enabled = val  # type: ignore[assignment]

    # Ledger section
    if parser.has_section("ledger"):
        if parser.has_option("ledger", "node_url"):
            cfg.ledger.node_url = parser.get("ledger", "node_url")
        if parser.has_option("ledger", "contract_address"):
            cfg.ledger.contract_address = parser.get("ledger", "contract_address").strip()
        if parser.has_option("ledger", "abi_path"):
            cfg.ledger.abi_path = parser.get("ledger", "abi_path")
        if parser.has_option("ledger", "gas_limit"):
            cfg.ledger.gas_limit = parser.getint("ledger", "gas_limit")
        if parser.has_option("ledger", "request_timeout_seconds"):
            cfg.ledger.request_timeout_seconds = parser.getfloat(
                "ledger", "request_timeout_seconds"
            )
        if parser.has_option("ledger", "tx_timeout_seconds"):
            cfg.ledger.tx_timeout_seconds = parser.getfloat("ledger", "tx_timeout_seconds")
        if parser.has_option("ledger", "poll_interval_seconds"):
            cfg.ledger.poll_interval_seconds = parser.getfloat("ledger", "poll_interval_seconds")

    # Mirror section
    if parser.has_section("mirror"):
        if parser.has_option("mirror", "path"):
            cfg.mirror.path = parser.get("mirror", "path")
        if parser.has_option("mirror", "timeout_seconds"):
            cfg.mirror.timeout_seconds = parser.getfloat("mirror", "timeout_seconds")

    # Logging section
    if parser.has_section("logging"):
        if parser.has_option("logging", "level"):
            cfg.logging.level = parser.get("logging", "level").upper()
        if parser.has_option("logging", "format"):
            val = parser.get("logging", "format").lower()
            if val in ("simple", "detailed", "json"):
                cfg.logging.format = val  # type: ignore[assignment]


def _apply_env_overrides(cfg: ServiceConfig) -> None:
    """Apply environment variable overrides to configuration."""
    # Server settings
    if env_host := os.getenv("SHIP_HOST"):
        cfg.server.host = env_host
    if env_port := os.getenv("SHIP_PORT"):
        cfg.server.port = int(env_port)

    # Security settings
    if env_production := os.getenv("SHIP_PRODUCTION"):
        cfg.security.production = _parse_bool(env_production)
    if env_cors := os.getenv("SHIP_CORS_ORIGINS"):
        cfg.security.cors_origins = _parse_list(env_cors)

    # Ledger settings
    if env_node := os.getenv("SHIP_LEDGER_NODE_URL"):
        cfg.ledger.node_url = env_node
    if env_address := os.getenv("SHIP_CONTRACT_ADDRESS"):
        cfg.ledger.contract_address = env_address.strip()
    if env_abi := os.getenv("SHIP_CONTRACT_ABI_PATH"):
        cfg.ledger.abi_path = env_abi
    if env_gas := os.getenv("SHIP_LEDGER_GAS_LIMIT"):
        cfg.ledger.gas_limit = int(env_gas)
    if env_tx_timeout := os.getenv("SHIP_LEDGER_TX_TIMEOUT_SECONDS"):
        cfg.ledger.tx_timeout_seconds = float(env_tx_timeout)

    # Mirror settings
    if env_db := os.getenv("SHIP_MIRROR_DB_PATH"):
        cfg.mirror.path = env_db
    if env_mirror_timeout := os.getenv("SHIP_MIRROR_TIMEOUT_SECONDS"):
        cfg.mirror.timeout_seconds = float(env_mirror_timeout)

    # Logging settings
    if env_log := os.getenv("SHIP_LOG_LEVEL"):
        cfg.logging.level = env_log.upper()
    if env_log_format := os.getenv("SHIP_LOG_FORMAT"):
        val = env_log_format.lower()
        if val in ("simple", "detailed", "json"):
            cfg.logging.format = val  # type: ignore[assignment]


def load_config() -> ServiceConfig:
    """
    Load configuration from all sources.

    Priority order (highest to lowest):
    1. Environment variables
    2. config/server.ini (if exists)
    3. config/server.example.ini (if server.ini doesn't exist)
    4. Built-in defaults

    Returns:
        ServiceConfig: Fully populated configuration object.
    """
    cfg = ServiceConfig()

    parser = configparser.ConfigParser()
    if CONFIG_FILE.exists():
        parser.read(CONFIG_FILE)
        _load_from_ini(parser, cfg)
    elif CONFIG_EXAMPLE.exists():
        parser.read(CONFIG_EXAMPLE)
        _load_from_ini(parser, cfg)

    _apply_env_overrides(cfg)

    return cfg


def reload_config() -> "ServiceConfig":
    """
    Reload configuration from disk and environment.

    This updates the module-level `config` singleton. Already-built ledger
    bindings and mirror stores keep the settings they were created with.

    Returns:
        ServiceConfig: The newly loaded configuration.
    """
    global config
    config = load_config()
    return config


# =============================================================================
# MODULE-LEVEL SINGLETON
# =============================================================================

config = load_config()


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def get_config_status() -> dict:
    """
    Get configuration status for diagnostics.

    Returns a dictionary with configuration source information,
    useful for debugging the ``show-config`` CLI command.
    """
    return {
        "config_file_exists": CONFIG_FILE.exists(),
        "config_file_path": str(CONFIG_FILE),
        "using_example": not CONFIG_FILE.exists() and CONFIG_EXAMPLE.exists(),
        "production_mode": config.is_production,
        "contract_configured": bool(config.ledger.contract_address),
        "abi_file_exists": config.ledger.absolute_abi_path.exists(),
        "docs_enabled": config.docs_should_be_enabled,
    }


def print_config_summary() -> None:
    """Print a summary of current configuration to stdout."""
    status = get_config_status()
    print("\n" + "=" * 60)
    print("SERVICE CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {status['config_file_path']}")
    print(f"File exists: {status['config_file_exists']}")
    if status["using_example"]:
        print("WARNING: Using example config (copy to server.ini for production)")
    print("-" * 60)
    print(f"Server:       {config.server.host}:{config.server.port}")
    print(f"Production:   {config.is_production}")
    print(f"Ledger node:  {config.ledger.node_url}")
    print(f"Contract:     {config.ledger.contract_address or '(not set)'}")
    print(f"ABI file:     {config.ledger.absolute_abi_path}")
    if not status["abi_file_exists"]:
        print("WARNING: ABI file not found (compile the contract first)")
    print(f"Mirror DB:    {config.mirror.absolute_path}")
    print(f"Log level:    {config.logging.level}")
    print("=" * 60 + "\n")


# =============================================================================
# TEST HELPERS
# =============================================================================


class use_test_database:
    """
    Context manager for pointing the mirror store at a temporary database.

    Usage:
        from shipment_ledger.config import use_test_database

        def test_something(tmp_path):
            with use_test_database(tmp_path / "test.db"):
                store = MirrorStore.from_settings(config.mirror)

    Args:
        db_path: Path to the test database file
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.original_path: str | None = None

    def __enter__(self) -> Path:
        """Set up test database path."""
        self.original_path = config.mirror.path
        config.mirror.path = str(self.db_path)
        return self.db_path

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Restore original database path."""
        if self.original_path is not None:
            config.mirror.path = self.original_path
        return None
