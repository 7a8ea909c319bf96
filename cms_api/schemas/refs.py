"""
Relation fields on API responses.

A related entity is either a bare ``reference`` (the id only) or ``resolved``
(the id plus a summary of the entity), so callers always know whether a
lookup was performed.
"""
from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, Literal, Union


class Reference(BaseModel):
    kind: Literal["reference"] = "reference"
    id: str


class Resolved(BaseModel):
    kind: Literal["resolved"] = "resolved"
    id: str
    entity: Dict[str, Any]


Relation = Annotated[Union[Reference, Resolved], Field(discriminator="kind")]
