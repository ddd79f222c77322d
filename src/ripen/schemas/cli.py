"""CLIConfig: Command-line operational overrides.

Minimal configuration for operational parameters that commonly change
between runs: image, output paths, timing, verbosity.

This schema handles command-line arguments parsed by argparse.
"""

from pathlib import Path
from typing import Literal, Optional
from pydantic import Field
from ripen.schemas.base import RipenBaseModel


class CLIConfig(RipenBaseModel):
    """Command-line configuration overrides.

    Operational-only settings that override user and param configs.
    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(
            image_path="sunset.png",
            base_dir="/scratch/ripen_output",
            interval_sec=5,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    image_path: Optional[str] = None
    base_dir: Optional[str] = None
    schema_name: Optional[str] = None
    interval_sec: Optional[float] = Field(None, gt=0)
    ripeness: Optional[int] = Field(None, ge=0)
    wait_for_previous: Optional[bool] = None
    align_second: Optional[int] = Field(None, ge=0, le=59)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        if self.image_path is not None:
            overrides["image"] = {"path": str(self.image_path)}

        store_overrides = {}
        if self.schema_name is not None:
            store_overrides["schema_name"] = self.schema_name
        if self.base_dir is not None:
            store_overrides["db_dir"] = str(Path(self.base_dir) / "store")
        if store_overrides:
            overrides["store"] = store_overrides

        bake_overrides = {}
        if self.interval_sec is not None:
            bake_overrides["interval_sec"] = self.interval_sec
        if self.ripeness is not None:
            bake_overrides["ripeness"] = self.ripeness
        if self.wait_for_previous is not None:
            bake_overrides["wait_for_previous"] = self.wait_for_previous
        if self.align_second is not None:
            bake_overrides["align_second"] = self.align_second
        if bake_overrides:
            overrides["bake"] = bake_overrides

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
