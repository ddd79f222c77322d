"""Shared pydantic base for every ripen config layer."""

from pydantic import BaseModel, ConfigDict


class RipenBaseModel(BaseModel):
    """Strict base model: unknown keys are errors, assignments revalidate.

    UserConfig relaxes ``extra`` to ``ignore`` and InternalConfig adds
    ``frozen``; every other schema uses these settings as is.
    """

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
    )

    def set_fields(self) -> dict:
        """Fields holding a value, as a nested dict of overrides."""
        return self.model_dump(exclude_none=True)
