"""Base model for pyjamstate data objects.

Every model handed to the presentation layer inherits from
:class:`JamBaseModel`, which makes instances immutable and serialises
field names in camelCase (``model_dump(by_alias=True)``) while still
accepting snake_case names on construction.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class JamBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )
