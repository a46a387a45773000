"""
Shared Pydantic base for persisted models.

Persisted profiles use camelCase keys, matching the JSON written by the
browser client. Snake_case names are accepted as well.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='ignore',
    )
