"""Pydantic configuration schemas for the ripen bake pipeline.

All configuration validation, coercion, and normalization happens at schema
validation time via Pydantic.

Exports
-------
resolve_config : function
    Single entrypoint for configuration resolution
InternalConfig : class
    Fully validated, authoritative runtime configuration
ParamConfig : class
    Expert defaults (complete)
UserConfig : class
    User-facing configuration (forgiving, minimal)
CLIConfig : class
    Command-line operational overrides
"""

from ripen.schemas.resolve import resolve_config
from ripen.schemas.internal import InternalConfig
from ripen.schemas.param import ParamConfig
from ripen.schemas.user import UserConfig
from ripen.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
