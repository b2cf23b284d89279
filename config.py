"""
Application configuration settings.

Centralizes all configuration parameters for the stock analysis journal.
Supports environment-based configuration and sensible defaults.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    path: Path = field(default_factory=lambda: Path("db/journal.db"))

    @property
    def url(self) -> str:
        """SQLAlchemy connection URL."""
        # Prefer direct URL if provided in environment
        env_url = os.environ.get("STOCK_JOURNAL_DB_URL") or os.environ.get("DATABASE_URL")
        if env_url:
            return env_url

        return f"sqlite:///{self.path}"


@dataclass(frozen=True)
class ValidationConfig:
    """
    Field limits enforced before anything is written.

    Shared by the validation module, the forms and the CLI help text.
    """
    symbol_pattern: str = r"^[A-Z]{1,5}$"
    max_price: float = 999999
    max_strategy_length: int = 50
    max_title_length: int = 100
    max_description_length: int = 2000
    max_tags: int = 10
    max_tag_length: int = 20
    min_risk_level: int = 1
    max_risk_level: int = 100


@dataclass(frozen=True)
class PositionDefaults:
    """Defaults applied to new positions when a field is left blank."""
    strategy: str = "General"
    category: str = "General"
    risk_level: int = 50
    position_size: float = 0.0


@dataclass(frozen=True)
class AuthConfig:
    """Local identity settings (stand-in for a hosted auth provider)."""
    default_email: str = "journal@localhost"


@dataclass(frozen=True)
class UIConfig:
    """Dashboard UI configuration."""
    page_title: str = "Stock Analysis Board"
    layout: str = "wide"

    # Number formatting
    decimal_places: int = 2

    # Columns the positions table can be grouped by
    group_by_options: tuple[str, ...] = ("position", "category", "strategy")


@dataclass
class Config:
    """
    Main configuration container.

    Usage:
        from config import config
        db_path = config.database.path
    """
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    position_defaults: PositionDefaults = field(default_factory=PositionDefaults)
    auth: AuthConfig = field(default_factory=AuthConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    # Base paths
    project_root: ClassVar[Path] = Path(__file__).parent

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create config from environment variables.

        Supports overrides via:
        - STOCK_JOURNAL_DB_PATH: Custom SQLite database path
        - STOCK_JOURNAL_USER: Email of the identity used by the CLI and dashboard
        """
        db_path_env = os.getenv("STOCK_JOURNAL_DB_PATH")
        db_config = DatabaseConfig(
            path=Path(db_path_env) if db_path_env else DatabaseConfig().path
        )

        user_env = os.getenv("STOCK_JOURNAL_USER")
        auth_config = AuthConfig(
            default_email=user_env if user_env else AuthConfig().default_email
        )

        return cls(database=db_config, auth=auth_config)


# Global config instance
config = Config.from_env()
