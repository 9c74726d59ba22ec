"""Configuration management for NoticeShield."""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from noticeshield.security.models import RiskConfig, ScanLimits


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")

    # Logging Configuration
    log_to_file: bool = Field(default=False, description="Enable file-based logging")
    log_directory: str = Field(default="logs", description="Directory for log files")
    log_file_max_bytes: int = Field(
        default=52428800,  # 50MB
        description="Max size per log file before rotation",
    )
    log_file_backup_count: int = Field(
        default=10, description="Number of rotated log files to keep"
    )
    log_file_prefix: str = Field(default="noticeshield", description="Prefix for log file names")

    # Rule Catalog
    catalog_path: str | None = Field(
        default=None,
        description="Path to a JSON rule catalog (built-in catalog when unset)",
    )

    # Risk Aggregation
    risk_max_score: int = Field(
        default=40, description="Verdicts scoring at or above this value are unsafe (1-100)"
    )
    weight_critical: int = Field(default=40, description="Score weight of a Critical finding")
    weight_high: int = Field(default=25, description="Score weight of a High finding")
    weight_medium: int = Field(default=15, description="Score weight of a Medium finding")
    weight_low: int = Field(default=5, description="Score weight of a Low finding")

    # Scan Limits
    entropy_threshold: float = Field(
        default=7.5, description="Shannon entropy (bits/byte) above which a sample is flagged"
    )
    entropy_sample_bytes: int = Field(
        default=1024, description="Bytes from the start of a file used for entropy"
    )
    content_scan_prefix_bytes: int = Field(
        default=1048576,  # 1MB
        description="Bytes from the start of a file scanned for embedded text patterns",
    )
    decode_max_depth: int = Field(
        default=2, description="Decode-and-rescan recursion depth for text subjects"
    )
    fragment_max_chars: int = Field(
        default=80, description="Maximum length of a matched fragment kept on a finding"
    )
    size_tolerance_bytes: int = Field(
        default=0, description="Allowed drift between declared and actual file size"
    )
    embedded_header_region_bytes: int = Field(
        default=100, description="Leading bytes skipped when searching for embedded archives"
    )

    # Sanitizer
    sanitizer_allowed_tags_str: str = Field(
        default="p,br,b,i,u,strong,em,ul,ol,li,a,h1,h2,h3,h4,h5,h6",
        alias="SANITIZER_ALLOWED_TAGS",
        description="Tags kept by the rich-text renderer (comma-separated)",
    )
    sanitizer_allowed_attributes_str: str = Field(
        default="href,title,target",
        alias="SANITIZER_ALLOWED_ATTRIBUTES",
        description="Attributes kept on allowed tags (comma-separated)",
    )

    @property
    def sanitizer_allowed_tags(self) -> list[str]:
        """Parse and return the allowed rich-text tags as a list."""
        return _split_csv(self.sanitizer_allowed_tags_str)

    @property
    def sanitizer_allowed_attributes(self) -> list[str]:
        """Parse and return the allowed rich-text attributes as a list."""
        return _split_csv(self.sanitizer_allowed_attributes_str)

    @field_validator("risk_max_score")
    @classmethod
    def validate_risk_max_score(cls, v: int) -> int:
        """Validate the risk threshold is inside the score range."""
        if not 1 <= v <= 100:
            raise ValueError(f"risk_max_score must be between 1 and 100, got: {v}")
        return v

    @field_validator("weight_critical", "weight_high", "weight_medium", "weight_low")
    @classmethod
    def validate_weight(cls, v: int) -> int:
        """Validate severity weights are non-negative."""
        if v < 0:
            raise ValueError(f"Severity weight must be non-negative, got: {v}")
        return v

    @field_validator("entropy_threshold")
    @classmethod
    def validate_entropy_threshold(cls, v: float) -> float:
        """Validate entropy threshold is between 0 and 8 bits per byte."""
        if not 0 <= v <= 8:
            raise ValueError(f"entropy_threshold must be between 0 and 8, got: {v}")
        return v

    @field_validator("decode_max_depth")
    @classmethod
    def validate_decode_max_depth(cls, v: int) -> int:
        """Validate decode depth stays small."""
        if not 0 <= v <= 5:
            raise ValueError(f"decode_max_depth must be between 0 and 5, got: {v}")
        return v

    @field_validator(
        "entropy_sample_bytes",
        "content_scan_prefix_bytes",
        "fragment_max_chars",
    )
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate size limits are positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got: {v}")
        return v

    @field_validator("size_tolerance_bytes", "embedded_header_region_bytes")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate offsets and tolerances are non-negative."""
        if v < 0:
            raise ValueError(f"Value must be non-negative, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_weight_order(self) -> Self:
        """Validate weights follow the severity order."""
        weights = [self.weight_low, self.weight_medium, self.weight_high, self.weight_critical]
        if weights != sorted(weights):
            raise ValueError("Severity weights must be non-decreasing from low to critical")
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"

    @property
    def log_file_path(self) -> str:
        """Get the full log file path."""
        return f"{self.log_directory}/{self.log_file_prefix}.log"

    def risk_config(self) -> RiskConfig:
        """Build the aggregation config consumed by the engine."""
        from noticeshield.security.models import RiskConfig, Severity

        return RiskConfig(
            max_score=self.risk_max_score,
            weights={
                Severity.LOW: self.weight_low,
                Severity.MEDIUM: self.weight_medium,
                Severity.HIGH: self.weight_high,
                Severity.CRITICAL: self.weight_critical,
            },
        )

    def scan_limits(self) -> ScanLimits:
        """Build the per-scan resource bounds consumed by the engine."""
        from noticeshield.security.models import ScanLimits

        return ScanLimits(
            content_scan_prefix_bytes=self.content_scan_prefix_bytes,
            entropy_sample_bytes=self.entropy_sample_bytes,
            entropy_threshold=self.entropy_threshold,
            decode_max_depth=self.decode_max_depth,
            fragment_max_chars=self.fragment_max_chars,
            size_tolerance_bytes=self.size_tolerance_bytes,
            embedded_header_region_bytes=self.embedded_header_region_bytes,
        )


def _split_csv(value: str) -> list[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
