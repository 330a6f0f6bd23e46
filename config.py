"""Configuration management for the Verify / claim-escrow event indexer"""

import os
import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


def _address_env(name: str) -> str:
    """Read an optional contract address, normalized to lowercase"""
    value = os.getenv(name, "").strip().lower()
    return value


class Config:
    """Application configuration"""

    # Environment detection (ENVIRONMENT takes absolute priority)
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower().strip()
    IS_PRODUCTION = ENVIRONMENT == "production"
    CURRENT_ENVIRONMENT = "production" if IS_PRODUCTION else "development"

    # Database configuration
    # Local SQLite file is the development default; production points at PostgreSQL
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./indexer_entities.db")
    SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() == "true"

    if DATABASE_URL.startswith("sqlite"):
        DATABASE_SOURCE = "SQLite (Local)"
    elif DATABASE_URL.startswith("postgresql"):
        DATABASE_SOURCE = "PostgreSQL"
    else:
        DATABASE_SOURCE = "Custom"

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    INDEXER_ERROR_LOG_DIR = os.getenv("INDEXER_ERROR_LOG_DIR", "logs")

    # Data source bindings: statically known contracts.
    # Children created by these factories are bound at runtime.
    VERIFY_FACTORY_ADDRESS = _address_env("VERIFY_FACTORY_ADDRESS")
    CLAIM_ESCROW_ADDRESS = _address_env("CLAIM_ESCROW_ADDRESS")
    NOTICE_BOARD_ADDRESS = _address_env("NOTICE_BOARD_ADDRESS")
    STAKE_FACTORY_ADDRESS = _address_env("STAKE_FACTORY_ADDRESS")

    # Separator used inside every composite entity id
    ID_SEPARATOR = " - "

    @staticmethod
    def static_data_sources() -> Dict[str, str]:
        """Map of configured contract address -> handler template name"""
        sources = {
            Config.VERIFY_FACTORY_ADDRESS: "verify_factory",
            Config.CLAIM_ESCROW_ADDRESS: "claim_escrow",
            Config.NOTICE_BOARD_ADDRESS: "notice_board",
            Config.STAKE_FACTORY_ADDRESS: "stake_factory",
        }
        return {address: template for address, template in sources.items() if address}

    @staticmethod
    def validate_data_sources() -> List[str]:
        """Return configuration problems with the static data source addresses"""
        issues = []
        for name in (
            "VERIFY_FACTORY_ADDRESS",
            "CLAIM_ESCROW_ADDRESS",
            "NOTICE_BOARD_ADDRESS",
            "STAKE_FACTORY_ADDRESS",
        ):
            value = getattr(Config, name)
            if not value:
                continue
            if not value.startswith("0x") or len(value) != 42:
                issues.append(f"{name} is not a 20-byte hex address: {value}")
        if not Config.static_data_sources():
            issues.append("No data source addresses configured - nothing will be indexed")
        return issues

    @staticmethod
    def log_environment_config():
        """Log current environment configuration for debugging"""
        logger.info("🔧 Indexer Environment Configuration:")
        logger.info(f"   Environment: {Config.CURRENT_ENVIRONMENT.upper()}")
        logger.info(f"   Database: {Config.DATABASE_SOURCE}")
        logger.info(f"   Log level: {Config.LOG_LEVEL}")

        for address, template in Config.static_data_sources().items():
            logger.info(f"   Data source: {template} @ {address}")

        for issue in Config.validate_data_sources():
            logger.warning(f"   ⚠️  {issue}")
