from pydantic import ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel
from sqlmodel import SQLModel
from typing_extensions import Annotated


NonEmptyStr = Annotated[str, StringConstraints(
    strip_whitespace=True, min_length=1)]


class CamelModel(SQLModel):
    """
    Wire DTO base: snake_case in Python, camelCase on the wire
    (the frontend sends and reads `materialName`, `isPrimary`, ...).
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
