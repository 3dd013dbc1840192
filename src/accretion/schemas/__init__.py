"""Pydantic configuration schemas for the accretion pipeline.

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

from accretion.schemas.resolve import resolve_config
from accretion.schemas.internal import InternalConfig
from accretion.schemas.param import ParamConfig
from accretion.schemas.user import UserConfig
from accretion.schemas.cli import CLIConfig

__all__ = [
    'resolve_config',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
    'CLIConfig',
]
