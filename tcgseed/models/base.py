"""Base Pydantic model for TCGSEED files on disk."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SeedModel(BaseModel):
    """
    Base for every persisted TCGSEED model.
    Fields are snake_case in Python and camelCase on disk.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        validate_assignment=True,
    )

    def to_json(self, exclude_none: bool = False) -> Dict[str, Any]:
        """
        Dump the model the way it is written to disk
        :param exclude_none: Drop optional fields that are unset
        :return: JSON compatible dict with camelCase keys
        """
        return self.model_dump(by_alias=True, exclude_none=exclude_none, mode="json")
