"""Shared pydantic base for models that cross the worker boundary."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base model with camelCase wire aliases.

    Python code uses snake_case attributes; JSON payloads use the camelCase
    field names of the dashboard (``buyVolume``, ``outputNodeId``, ...).
    Both spellings are accepted on input.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """Dump to a JSON-compatible dict using wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True)
