"""Configuration management for the product enrichment pipeline."""

import os
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional

import yaml
from pydantic import BaseModel, Field, ValidationInfo, field_validator

from src.models.errors import ConfigurationError


class PipelineConfig(BaseModel):
    """Main pipeline configuration with throughput tuning parameters."""

    # Upstream commerce API
    commerce_base_url: Optional[str] = Field(
        default=None, description="Base REST URL, e.g. https://shop.example.com/rest/V1"
    )
    commerce_access_token: Optional[str] = Field(
        default=None, description="Bearer credential passed to the request client"
    )

    # Pagination
    page_size: int = Field(default=100, description="Products per page")
    max_pages: int = Field(default=25, description="Maximum product pages to fetch")

    # Enrichment throughput
    category_batch_size: int = Field(default=20, description="Category ids per batch")
    inventory_batch_size: int = Field(default=50, description="SKUs per batch")
    max_concurrent: int = Field(default=15, description="In-flight requests per dataset")
    inter_chunk_delay_ms: int = Field(default=75, description="Sleep between chunks in milliseconds")

    # Per-identifier retry policy
    enrichment_max_attempts: int = Field(default=1, description="Attempts per identifier lookup")
    retry_base_delay: float = Field(default=0.5, description="Base delay for exponential backoff")
    retry_max_delay: float = Field(default=4.0, description="Maximum retry delay")
    retry_jitter_max: float = Field(default=0.0, description="Maximum jitter for retry delay")

    # Timeouts
    connect_timeout: float = Field(default=3.0, description="HTTP connect timeout in seconds")
    read_timeout: float = Field(default=8.0, description="HTTP read timeout in seconds")
    total_timeout: float = Field(default=120.0, description="Pipeline deadline in seconds")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Output
    output_directory: str = Field(default="out", description="Output directory for results")
    output_filename: str = Field(default="products.json", description="Output JSON filename")

    @field_validator('commerce_base_url')
    @classmethod
    def validate_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Validate URL format and drop a trailing slash."""
        if v is None or v == "":
            return None
        if not v.startswith(('http://', 'https://')):
            raise ValueError(f"commerce_base_url must start with http:// or https://, got: {v}")
        return v.rstrip('/')

    @field_validator(
        'page_size',
        'max_pages',
        'category_batch_size',
        'inventory_batch_size',
        'max_concurrent',
        'enrichment_max_attempts',
    )
    @classmethod
    def validate_positive(cls, v: int, info: ValidationInfo) -> int:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be positive, got: {v}")
        return v

    @field_validator('inter_chunk_delay_ms')
    @classmethod
    def validate_delay(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"inter_chunk_delay_ms must not be negative, got: {v}")
        return v

    @field_validator('total_timeout')
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        """Validate timeout is positive."""
        if v <= 0:
            raise ValueError(f"total_timeout must be positive, got: {v}")
        return v

    @property
    def output_path(self) -> Path:
        """Get full output file path."""
        return Path(self.output_directory) / self.output_filename

    def require_commerce_settings(self) -> None:
        """
        Fail fast when the upstream API cannot be reached at all.

        Raises:
            ConfigurationError: If the base URL or the access token is missing
        """
        if not self.commerce_base_url:
            raise ConfigurationError("Missing commerce base URL (commerce_base_url / COMMERCE_BASE_URL)")
        if not self.commerce_access_token:
            raise ConfigurationError(
                "Missing commerce credentials (commerce_access_token / COMMERCE_ACCESS_TOKEN)"
            )

    # Environment variable overrides
    ENV_MAPPINGS: ClassVar[Dict[str, str]] = {
        "COMMERCE_BASE_URL": "commerce_base_url",
        "COMMERCE_ACCESS_TOKEN": "commerce_access_token",
        "PIPELINE_PAGE_SIZE": "page_size",
        "PIPELINE_MAX_PAGES": "max_pages",
        "PIPELINE_MAX_CONCURRENT": "max_concurrent",
        "PIPELINE_INTER_CHUNK_DELAY_MS": "inter_chunk_delay_ms",
        "PIPELINE_TIMEOUT": "total_timeout",
        "PIPELINE_LOG_LEVEL": "log_level",
    }

    @classmethod
    def env_overrides(cls) -> Dict[str, Any]:
        """
        Field values for the environment variables that are actually set.

        Returns:
            Dict keyed by field name, converted to the field's type
        """
        values: Dict[str, Any] = {}
        for env_var, field_name in cls.ENV_MAPPINGS.items():
            if env_var in os.environ:
                value = os.environ[env_var]
                field_info = cls.model_fields[field_name]
                if field_info.annotation == int:
                    values[field_name] = int(value)
                elif field_info.annotation == float:
                    values[field_name] = float(value)
                else:
                    values[field_name] = value
        return values

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create configuration from defaults and environment variable overrides."""
        return cls(**cls.env_overrides())


class ConfigManager:
    """Manages configuration loading with override precedence."""

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or Path("config/config.yaml")
        self._config: Optional[PipelineConfig] = None

    def load_config(self, cli_overrides: Optional[Dict] = None) -> PipelineConfig:
        """
        Load configuration with override precedence: CLI > ENV > YAML.

        An environment variable that is set always wins over the YAML file,
        even when its value equals the built-in default.

        Args:
            cli_overrides: Optional dictionary of CLI flag overrides

        Returns:
            Fully merged PipelineConfig instance

        Raises:
            ValueError: If configuration validation fails
        """
        config_dict = {}

        if self.config_file.exists():
            with open(self.config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config_dict.update(yaml_config)

        config_dict.update(PipelineConfig.env_overrides())

        if cli_overrides:
            config_dict.update({k: v for k, v in cli_overrides.items() if v is not None})

        self._config = PipelineConfig(**config_dict)
        return self._config

    @property
    def config(self) -> PipelineConfig:
        """Get the loaded configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config
