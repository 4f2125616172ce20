"""Pydantic configuration schemas for epdkit.

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
"""

from epdkit.schemas.resolve import resolve_config, deep_merge
from epdkit.schemas.internal import InternalConfig
from epdkit.schemas.param import ParamConfig
from epdkit.schemas.user import UserConfig

__all__ = [
    'resolve_config',
    'deep_merge',
    'InternalConfig',
    'ParamConfig',
    'UserConfig',
]
