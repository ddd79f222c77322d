"""ParamConfig: Expert defaults for the ripen bake pipeline.

This module defines the complete default configuration. ALL pipeline
parameters must have defaults here. No runtime code should define fallback
values - this is the single source of truth for defaults.

Runtime code NEVER reads from ParamConfig directly - it only receives InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from ripen.schemas.base import RipenBaseModel

# Schema names end up inside SQL and file names, so keep them to identifiers.
SCHEMA_NAME_PATTERN = r"^[A-Za-z_][A-Za-z0-9_]*$"


# =============================================================================
# Nested Configuration Models
# =============================================================================

class ImageConfig(RipenBaseModel):
    """Source image configuration."""
    path: Optional[str] = None
    max_color: int = Field(256, ge=1, description="Intensity scale denominator")


class StoreConfig(RipenBaseModel):
    """SQLite bucket store configuration."""
    schema_name: str = Field("ripen", pattern=SCHEMA_NAME_PATTERN)
    db_dir: Optional[str] = None
    busy_timeout_sec: float = Field(30.0, gt=0, description="Seconds a writer waits on a locked database")
    journal_mode: Literal["wal", "delete"] = "wal"

    @field_validator("journal_mode", mode="before")
    @classmethod
    def normalize_journal_mode(cls, v):
        """Normalize journal mode to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class BakeConfig(RipenBaseModel):
    """Column scheduler configuration."""
    ripeness: int = Field(256, ge=0, description="Initial tokens per row bucket")
    interval_sec: float = Field(60.0, gt=0, description="Seconds between column ticks")
    wait_for_previous: bool = False  # Join the previous column before dispatching the next
    align_second: Optional[int] = Field(None, ge=0, le=59)
    provision: bool = True  # Drop and rebuild the buckets before baking

    @field_validator("interval_sec", mode="before")
    @classmethod
    def coerce_interval_to_float(cls, v):
        """Allow int or float for interval."""
        return float(v)


class LoggingConfig(RipenBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        """Normalize level names to uppercase."""
        if isinstance(v, str):
            return v.upper().strip()
        return v


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(RipenBaseModel):
    """Complete expert configuration with defaults.

    Every field has a default here except the run-specific paths
    (image path, output directory) which must come from the user or CLI.
    """

    base_dir: Optional[str] = None
    image: ImageConfig = Field(default_factory=ImageConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    bake: BakeConfig = Field(default_factory=BakeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
