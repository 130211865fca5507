"""
Schemas for flexible collection requests and their response envelopes
"""

import enum
from typing import Any, Dict, List, Optional

import pydantic


@enum.unique
class Details(str, enum.Enum):
    """
    Detail level used to render the items of a collection page
    """

    MINIMAL = "minimal"
    ALL = "all"


class CollectionParameters(pydantic.BaseModel):
    """
    CollectionParameters: typed query parameters of a flexible collection request

    The field `sort` names the attribute used to order the collection
    ascending (matched case-insensitively against the known attributes).
    The flag `reverse` inverts the resulting order. The field `offset`
    skips that many leading items, while `limit` truncates the page to at
    most that many items (a `limit` of zero only delivers the metadata).
    The field `details` selects whether items are rendered as references
    (`minimal`) or with their full body (`all`).
    """

    model_config = pydantic.ConfigDict(frozen=True, extra="forbid")

    sort: Optional[pydantic.constr(min_length=1, max_length=255)] = None
    reverse: bool = False
    limit: Optional[pydantic.NonNegativeInt] = None
    offset: pydantic.NonNegativeInt = 0
    details: Details = Details.MINIMAL

    @pydantic.field_validator("details", mode="before")
    @classmethod
    def normalize_details(cls, value: Any) -> Any:
        if isinstance(value, str) and not isinstance(value, Details):
            return value.strip().lower()
        return value


class PageReference(pydantic.BaseModel):
    """
    Reference to another page of the same collection, used to build `previous` and `next` links
    """

    model_config = pydantic.ConfigDict(frozen=True)

    offset: pydantic.NonNegativeInt
    limit: Optional[pydantic.NonNegativeInt]
    sort: Optional[str]
    reverse: bool
    details: Details

    def query(self) -> Dict[str, str]:
        """
        Return the query parameters that select the referenced page
        """

        params = {"offset": str(self.offset)}
        if self.limit is not None:
            params["limit"] = str(self.limit)
        if self.sort is not None:
            params["sort"] = self.sort
        params["reverse"] = "true" if self.reverse else "false"
        params["details"] = self.details.value
        return params


class Envelope(pydantic.BaseModel):
    """
    Envelope: response wrapping one page of a collection with its paging metadata

    The field `items` holds the rendered resources of the page, either
    references or full bodies depending on `details`. The fields `sort`,
    `reverse`, `limit` and `offset` echo the effective request. The field
    `total` counts the whole collection regardless of paging. The fields
    `previous` and `next` contain opaque links to the neighboring pages,
    or `null` if there is no such page. Optional fields are always present
    in the serialized form and hold `null` when unset.
    """

    items: List[Any]
    sort: Optional[str]
    reverse: bool
    limit: Optional[pydantic.NonNegativeInt]
    offset: pydantic.NonNegativeInt
    previous: Optional[str]
    next: Optional[str]
    total: pydantic.NonNegativeInt
    details: Details
