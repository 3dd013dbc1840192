"""Base Pydantic model with strict defaults for accretion configs.

All accretion config schemas inherit from this base so parameter, user,
CLI and internal configs validate the same way.
"""

from pydantic import BaseModel, ConfigDict


class AccretionBaseModel(BaseModel):
    """Base model for all accretion configuration schemas.

    Enforces strict validation:
    - No extra fields allowed
    - Validates assignments after initialization
    - Uses Python mode (not JSON mode)
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )
