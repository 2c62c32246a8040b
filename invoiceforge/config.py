"""InvoiceForge configuration management.

Loads configuration from environment variables with sensible defaults.
Defaults reproduce the stock mapping/transformation heuristics exactly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class MappingConfig:
    """Column-mapping and shape-detection thresholds."""

    fuzzy_min_confidence: int = 65
    sample_row_limit: int = 10
    sample_value_limit: int = 5
    multi_row_unique_ratio: float = 0.8
    relationship_min_confidence: int = 50


@dataclass
class TransformConfig:
    """Row-to-invoice transformation defaults."""

    default_currency: str = "USD"
    # Discount values above this are a fixed amount, otherwise a percentage
    fixed_discount_threshold: Decimal = Decimal("100")
    warn_on_total_mismatch: bool = False


@dataclass
class IngestionConfig:
    """Upload limits applied by the workbook loader."""

    max_file_size_mb: int = 50
    max_rows: int = 50000


@dataclass
class FormattingConfig:
    """Number and date presentation defaults."""

    decimal_places: int = 2
    decimal_separator: str = "."
    thousands_separator: str = ","
    date_format: str = "MM/DD/YYYY"


@dataclass
class AppConfig:
    """Root application configuration."""

    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    mapping: MappingConfig = field(default_factory=MappingConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)
    ingestion: IngestionConfig = field(default_factory=IngestionConfig)
    formatting: FormattingConfig = field(default_factory=FormattingConfig)

    @classmethod
    def from_env(cls) -> AppConfig:
        """Load configuration from environment variables.

        Every setting is optional; unset variables fall back to the dataclass
        defaults.

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_format=os.getenv("LOG_FORMAT", "text").lower(),
            mapping=MappingConfig(
                fuzzy_min_confidence=int(os.getenv("FUZZY_MIN_CONFIDENCE", "65")),
                sample_row_limit=int(os.getenv("SAMPLE_ROW_LIMIT", "10")),
                sample_value_limit=int(os.getenv("SAMPLE_VALUE_LIMIT", "5")),
                multi_row_unique_ratio=float(os.getenv("MULTI_ROW_UNIQUE_RATIO", "0.8")),
                relationship_min_confidence=int(
                    os.getenv("RELATIONSHIP_MIN_CONFIDENCE", "50")
                ),
            ),
            transform=TransformConfig(
                default_currency=os.getenv("DEFAULT_CURRENCY", "USD").upper(),
                fixed_discount_threshold=Decimal(
                    os.getenv("FIXED_DISCOUNT_THRESHOLD", "100")
                ),
                warn_on_total_mismatch=os.getenv(
                    "WARN_ON_TOTAL_MISMATCH", "false"
                ).lower()
                == "true",
            ),
            ingestion=IngestionConfig(
                max_file_size_mb=int(os.getenv("MAX_FILE_SIZE_MB", "50")),
                max_rows=int(os.getenv("MAX_ROWS", "50000")),
            ),
            formatting=FormattingConfig(
                decimal_places=int(os.getenv("DECIMAL_PLACES", "2")),
                decimal_separator=os.getenv("DECIMAL_SEPARATOR", "."),
                thousands_separator=os.getenv("THOUSANDS_SEPARATOR", ","),
                date_format=os.getenv("DATE_FORMAT", "MM/DD/YYYY"),
            ),
        )


# Singleton instance (lazy-loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get or create singleton AppConfig instance from environment.

    Returns:
        AppConfig: Application configuration
    """
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def reset_config() -> None:
    """Drop the cached configuration so the next call re-reads the environment."""
    global _config
    _config = None
