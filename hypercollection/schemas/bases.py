"""
hypercollection schemas for the example resources
"""

from typing import Optional

import pydantic


class User(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    name: pydantic.constr(max_length=255)
    email: Optional[pydantic.constr(max_length=255)] = None
    age: Optional[pydantic.NonNegativeInt] = None
    created: pydantic.NonNegativeInt


class UserCreation(pydantic.BaseModel):
    name: pydantic.constr(min_length=1, max_length=255)
    email: Optional[pydantic.constr(max_length=255)] = None
    age: Optional[pydantic.NonNegativeInt] = None


class ResourceReference(pydantic.BaseModel):
    """
    ResourceReference: minimal representation of a resource in a collection

    The field `id` holds the stable key of the resource, while the
    field `href` holds the link to retrieve the full resource body.
    """

    id: pydantic.NonNegativeInt
    href: str
