"""
Shared base for API schemas.

The dashboard frontend speaks camelCase JSON. Schemas are declared with
snake_case attributes and serialized through camelCase aliases; requests
are accepted in either form.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
