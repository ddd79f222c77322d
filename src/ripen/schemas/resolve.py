"""Turn the three config layers into one InternalConfig.

    ParamConfig (defaults)  <  UserConfig (CONFIG dict)  <  CLIConfig (flags)

Each layer is reduced to a nested dict of the values it sets and the dicts
are merged left to right. Only the merged result is validated as an
InternalConfig, so a required value (image path, base directory) may come
from any layer.
"""

from pathlib import Path
from typing import Union, Optional
from ripen.schemas.param import ParamConfig
from ripen.schemas.user import UserConfig
from ripen.schemas.cli import CLIConfig
from ripen.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Recursively merge ``overrides`` into a copy of ``base``.

    Dict values merge key by key; anything else is replaced by the later
    value. Inputs are left untouched.

    >>> deep_merge({"bake": {"ripeness": 256, "interval_sec": 60.0}},
    ...            {"bake": {"ripeness": 10}})
    {'bake': {'ripeness': 10, 'interval_sec': 60.0}}
    """
    merged = dict(base)
    for layer in overrides:
        for key, value in layer.items():
            current = merged.get(key)
            if isinstance(current, dict) and isinstance(value, dict):
                merged[key] = deep_merge(current, value)
            else:
                merged[key] = value
    return merged


def _as_model(value, model):
    if value is None or (isinstance(value, dict) and not value):
        return model()
    if isinstance(value, model):
        return value
    return model.model_validate(value)


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Build the runtime config for one bake.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert defaults.
    user_cfg : dict or UserConfig, optional
        Contents of the user's CONFIG dict.
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides; win over everything else.

    Returns
    -------
    InternalConfig
        Frozen. ``store.db_dir`` defaults to ``<base_dir>/store``.

    Raises
    ------
    ValidationError
        If a layer is invalid or the merge leaves a required value unset.

    Examples
    --------
    >>> user = UserConfig(image_path="sunset.png", base_dir="/tmp/ripen", ripeness=10)
    >>> config = resolve_config(ParamConfig(), user)
    >>> config.bake.ripeness, config.store.db_dir
    (10, '/tmp/ripen/store')
    """
    param = _as_model(param_cfg, ParamConfig)
    user = _as_model(user_cfg, UserConfig)
    cli = _as_model(cli_cfg, CLIConfig)

    merged = deep_merge(
        param.model_dump(),
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )

    if merged["store"].get("db_dir") is None and merged.get("base_dir") is not None:
        merged["store"]["db_dir"] = str(Path(merged["base_dir"]) / "store")

    return InternalConfig.model_validate(merged)
