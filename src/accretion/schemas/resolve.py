"""Configuration resolution and merging logic.

resolve_config() is the single entrypoint: it merges ParamConfig,
UserConfig and CLIConfig in precedence order and returns a validated,
frozen InternalConfig.

Precedence (highest to lowest):
1. CLIConfig (command-line overrides)
2. UserConfig (user file)
3. ParamConfig (expert defaults)
"""

from pathlib import Path
from typing import Union, Optional
from accretion.schemas.param import ParamConfig
from accretion.schemas.user import UserConfig
from accretion.schemas.cli import CLIConfig
from accretion.schemas.internal import InternalConfig


def deep_merge(base: dict, *overrides: dict) -> dict:
    """Deep merge multiple dictionaries.

    Later dictionaries override earlier ones. Nested dictionaries are
    merged recursively; other values are replaced.

    Examples
    --------
    >>> deep_merge({"a": 1, "b": {"c": 2, "d": 3}}, {"b": {"d": 4}, "f": 6})
    {'a': 1, 'b': {'c': 2, 'd': 4}, 'f': 6}
    """
    result = base.copy()

    for override in overrides:
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = deep_merge(result[key], value)
            else:
                result[key] = value

    return result


def _fill_store_dirs(merged: dict) -> None:
    """Default the frame directories under base_dir when left unset."""
    base_dir = merged.get("base_dir")
    if base_dir is None:
        return
    store = merged["store"]
    if store.get("source_dir") is None:
        store["source_dir"] = str(Path(base_dir) / "frames")
    if store.get("downlink_dir") is None:
        store["downlink_dir"] = str(Path(base_dir) / "downlink")


def resolve_config(
    param_cfg: Union[dict, ParamConfig],
    user_cfg: Optional[Union[dict, UserConfig]] = None,
    cli_cfg: Optional[Union[dict, CLIConfig]] = None,
) -> InternalConfig:
    """Resolve final runtime configuration from param, user, and CLI configs.

    Parameters
    ----------
    param_cfg : dict or ParamConfig
        Expert configuration with complete defaults. Required.
    user_cfg : dict or UserConfig, optional
        User configuration with overrides.
    cli_cfg : dict or CLIConfig, optional
        Command-line overrides.

    Returns
    -------
    InternalConfig
        Fully validated, immutable runtime configuration

    Raises
    ------
    ValidationError
        If any config fails Pydantic validation
    ValueError
        If the frame range is inverted (end_index < start_index)

    Examples
    --------
    >>> config = resolve_config(ParamConfig(), UserConfig(DOWNLINK_PERCENTAGE=40))
    >>> config.downlink.percentage
    40.0
    """
    if not isinstance(param_cfg, ParamConfig):
        param = ParamConfig.model_validate(param_cfg)
    else:
        param = param_cfg

    if user_cfg is None or (isinstance(user_cfg, dict) and not user_cfg):
        user = UserConfig()
    elif not isinstance(user_cfg, UserConfig):
        user = UserConfig.model_validate(user_cfg)
    else:
        user = user_cfg

    if cli_cfg is None or (isinstance(cli_cfg, dict) and not cli_cfg):
        cli = CLIConfig()
    elif not isinstance(cli_cfg, CLIConfig):
        cli = CLIConfig.model_validate(cli_cfg)
    else:
        cli = cli_cfg

    merged = deep_merge(
        param.model_dump(),
        user.to_internal_overrides(),
        cli.to_internal_overrides(),
    )
    _fill_store_dirs(merged)

    sequence = merged["sequence"]
    if sequence["end_index"] is not None and sequence["end_index"] < sequence["start_index"]:
        raise ValueError(
            f"end_index ({sequence['end_index']}) must be >= start_index ({sequence['start_index']})"
        )

    return InternalConfig.model_validate(merged)
