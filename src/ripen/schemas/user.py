"""UserConfig: Forgiving, minimal user-facing configuration.

This schema accepts user inputs in a variety of formats, with aliases
for common naming patterns (e.g., IMAGE_PATH → image_path, RIPENESS → ripeness).

UserConfig is intentionally minimal - users only specify what they want
to override from the expert defaults. Validation is lenient to accept
both uppercase and lowercase keys, integers where floats are expected, etc.
"""

from pathlib import Path
from typing import Literal, Optional
from pydantic import Field, field_validator
from ripen.schemas.base import RipenBaseModel


class UserImageConfig(RipenBaseModel):
    """User-facing image config."""
    path: Optional[str] = None
    max_color: Optional[int] = None


class UserStoreConfig(RipenBaseModel):
    """User-facing store config."""
    schema_name: Optional[str] = None
    db_dir: Optional[str] = None
    busy_timeout_sec: Optional[float] = None
    journal_mode: Optional[str] = None

    @field_validator("journal_mode", mode="before")
    @classmethod
    def normalize_journal_mode(cls, v):
        """Normalize journal mode to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserBakeConfig(RipenBaseModel):
    """User-facing bake config."""
    ripeness: Optional[int] = None
    interval_sec: Optional[float] = None
    wait_for_previous: Optional[bool] = None
    align_second: Optional[int] = None
    provision: Optional[bool] = None


class UserConfig(RipenBaseModel):
    """User-facing configuration schema.

    Minimal, forgiving, and uses common aliases. Users only specify
    what they want to override from ParamConfig defaults.

    This config is converted to internal overrides during resolution.

    Usage
    -----
        user_cfg = UserConfig(
            image_path="sunset.png",
            base_dir="/data/ripen",
            ripeness=128,
            interval_sec=30,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    # Top-level operational settings
    image_path: Optional[str] = Field(None, alias="IMAGE_PATH")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")
    schema_name: Optional[str] = Field(None, alias="SCHEMA_NAME")

    # Bake settings (flat aliases)
    ripeness: Optional[int] = Field(None, alias="RIPENESS")
    interval_sec: Optional[float] = Field(None, alias="INTERVAL_SEC")
    wait_for_previous: Optional[bool] = Field(None, alias="WAIT_FOR_PREVIOUS")
    align_second: Optional[int] = Field(None, alias="ALIGN_SECOND")
    provision: Optional[bool] = Field(None, alias="PROVISION")
    max_color: Optional[int] = Field(None, alias="MAX_COLOR")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    image: Optional[UserImageConfig] = None
    store: Optional[UserStoreConfig] = None
    bake: Optional[UserBakeConfig] = None

    model_config = RipenBaseModel.model_config.copy()
    # Allow forgiving input dictionaries (ignore unknown legacy keys)
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("interval_sec", mode="before")
    @classmethod
    def coerce_numeric_fields(cls, v):
        """Accept int or float for numeric fields."""
        if v is not None:
            return float(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        """Normalize level names to uppercase."""
        if isinstance(v, str):
            return v.upper().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        # Image section
        image = {}
        if self.image_path is not None:
            image["path"] = str(self.image_path)
        if self.max_color is not None:
            image["max_color"] = self.max_color
        if self.image is not None:
            image.update(self.image.set_fields())
        if image:
            overrides["image"] = image

        # Store section
        store = {}
        if self.schema_name is not None:
            store["schema_name"] = self.schema_name
        # Map base_dir to store.db_dir for convenience
        if self.base_dir is not None:
            store["db_dir"] = str(Path(self.base_dir) / "store")
        if self.store is not None:
            store.update(self.store.set_fields())
        if store:
            overrides["store"] = store

        # Bake section
        bake = {}
        if self.ripeness is not None:
            bake["ripeness"] = self.ripeness
        if self.interval_sec is not None:
            bake["interval_sec"] = self.interval_sec
        if self.wait_for_previous is not None:
            bake["wait_for_previous"] = self.wait_for_previous
        if self.align_second is not None:
            bake["align_second"] = self.align_second
        if self.provision is not None:
            bake["provision"] = self.provision
        if self.bake is not None:
            bake.update(self.bake.set_fields())
        if bake:
            overrides["bake"] = bake

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
