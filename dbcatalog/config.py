"""Configuration management for dbcatalog."""

import os
from enum import Enum
from pathlib import Path
from pydantic_settings import BaseSettings
from pydantic import Field
from typing import Optional, Dict, List


def _find_env_file() -> Optional[str]:
    """Find .env file in multiple locations.

    Search order:
    1. Current working directory
    2. ~/.dbcatalog/.env
    3. Package directory (where this file is located)
    """
    if os.path.exists(".env"):
        return ".env"

    user_env = Path.home() / ".dbcatalog" / ".env"
    if user_env.exists():
        return str(user_env)

    package_dir = Path(__file__).parent.parent
    package_env = package_dir / ".env"
    if package_env.exists():
        return str(package_env)

    return None


class RetrievalStrategy(str, Enum):
    """How a metadata category is retrieved."""

    DATA_DICTIONARY = "data_dictionary"
    METADATA = "metadata"
    NONE = "none"


class IdentifierCase(str, Enum):
    """How unquoted identifiers are compared."""

    UPPER = "upper"
    LOWER = "lower"
    PRESERVE = "preserve"


class Settings(BaseSettings):
    """Crawl settings loaded from environment variables."""

    # Retrieval strategy per metadata category
    foreign_keys_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for foreign keys"
    )
    check_constraints_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for check constraints"
    )
    triggers_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for triggers"
    )
    views_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for view definitions"
    )
    table_privileges_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for table privileges"
    )
    column_privileges_strategy: RetrievalStrategy = Field(
        default=RetrievalStrategy.DATA_DICTIONARY,
        description="Strategy for column privileges"
    )

    dialect_queries: Dict[str, str] = Field(
        default_factory=dict,
        description="Data dictionary queries keyed by query name, overriding the dialect defaults"
    )
    identifier_case: Optional[IdentifierCase] = Field(
        default=None,
        description="Identifier case rule (default: the database's own rule)"
    )

    # Inclusion rules, regular expressions over fully qualified names
    schema_include: str = Field(default=".*", description="Schemas to include")
    schema_exclude: Optional[str] = Field(default=None, description="Schemas to exclude")
    table_include: str = Field(default=".*", description="Tables to include")
    table_exclude: Optional[str] = Field(default=None, description="Tables to exclude")
    column_include: str = Field(default=".*", description="Columns to include")
    column_exclude: Optional[str] = Field(default=None, description="Columns to exclude")

    # Weak associations
    weak_associations: bool = Field(
        default=False,
        description="Infer undeclared relationships from naming patterns"
    )
    weak_association_key_suffixes: List[str] = Field(
        default_factory=lambda: ["_id", "id", "_key", "_code"],
        description="Column name suffixes that mark a referencing column"
    )
    weak_association_table_prefixes: List[str] = Field(
        default_factory=lambda: ["tbl_", "t_"],
        description="Table name prefixes ignored when matching"
    )
    weak_association_table_suffixes: List[str] = Field(
        default_factory=lambda: ["_master", "_dim", "_lookup", "_ref"],
        description="Table name suffixes ignored when matching"
    )

    # Crawl run logging configuration
    run_logging_enabled: bool = Field(
        default=True,
        description="Enable database logging for crawl runs"
    )
    run_logging_db_path: Optional[str] = Field(
        default=None,
        description="Path to crawl runs database file (default: ~/.dbcatalog/crawl_runs.db)"
    )
    run_logging_retention_days: int = Field(
        default=30,
        description="Number of days to retain crawl run entries"
    )

    class Config:
        env_prefix = "DBCATALOG_"
        env_file = _find_env_file()
        env_file_encoding = "utf-8"

    def strategy_for(self, category: str) -> RetrievalStrategy:
        """Get the configured strategy for a retrieval category."""
        return getattr(self, f"{category}_strategy", RetrievalStrategy.NONE)


# Global settings instance
settings = Settings()
