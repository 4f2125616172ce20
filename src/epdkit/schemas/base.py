"""Base Pydantic model with strict defaults for epdkit configs.

All config schemas inherit from this base so that parameter, user and
internal configs validate the same way.
"""

from pydantic import BaseModel, ConfigDict


class EpdBaseModel(BaseModel):
    """Base model for all epdkit configuration schemas.

    - No extra fields allowed
    - Validates assignments after initialization
    - Enums stored as their values
    - Whitespace stripped from strings
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )
