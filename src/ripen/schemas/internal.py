"""InternalConfig: what the bake actually runs with.

Produced only by ``resolve_config``. Every field is set and validated, so
pipeline code reads attributes directly and never supplies its own defaults.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict
from ripen.schemas.base import RipenBaseModel
from ripen.schemas.param import SCHEMA_NAME_PATTERN


# =============================================================================
# Nested Configuration Models (Runtime)
# =============================================================================

class InternalImageConfig(RipenBaseModel):
    """Runtime image configuration."""
    path: str
    max_color: int = Field(ge=1)


class InternalStoreConfig(RipenBaseModel):
    """Runtime store configuration."""
    schema_name: str = Field(pattern=SCHEMA_NAME_PATTERN)
    db_dir: str
    busy_timeout_sec: float = Field(gt=0)
    journal_mode: Literal["wal", "delete"]


class InternalBakeConfig(RipenBaseModel):
    """Runtime scheduler configuration."""
    ripeness: int = Field(ge=0)
    interval_sec: float = Field(gt=0)
    wait_for_previous: bool
    align_second: Optional[int] = Field(ge=0, le=59)  # None disables alignment
    provision: bool


class InternalLoggingConfig(RipenBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# =============================================================================
# Main InternalConfig
# =============================================================================

class InternalConfig(RipenBaseModel):
    """Frozen runtime configuration handed to BakeOrchestrator.

    ``image.path``, ``store.db_dir`` and ``base_dir`` are required here even
    though every input layer leaves them optional; a bake cannot start
    without them.

        orch = BakeOrchestrator(config, output_dirs)
        config.bake.interval_sec    # 60.0 unless overridden
    """

    base_dir: str
    image: InternalImageConfig
    store: InternalStoreConfig
    bake: InternalBakeConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,  # Immutable after construction
    )
