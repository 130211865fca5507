"""
Paging flexible collections at the source using SQLAlchemy queries

Instead of loading a whole table into memory, the ordering, offset
and limit of a collection request are translated into SQL. The result
is a window of at most ``limit`` rows together with the total number
of rows matched by the query, which can be passed to the function
``hypercollection.collection.evaluate_window`` afterwards.
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Type, Union

import sqlalchemy
import sqlalchemy.orm

from ..collection import InvalidParameter, NullOrdering, resolve_attribute
from ..collection.parameters import QuerySource, ensure_parameters
from ..schemas.collection import CollectionParameters
from .database import Base


logger = logging.getLogger(__name__)


class Window(NamedTuple):
    items: List[Any]
    total: int
    sort: Optional[str]


def sortable_columns(model: Type[Base]) -> Dict[str, sqlalchemy.Column]:
    """
    Return the mapped columns of a model keyed by their attribute names
    """

    mapper = sqlalchemy.inspect(model)
    return {attr.key: attr.columns[0] for attr in mapper.column_attrs}


def fetch_window(
        query: sqlalchemy.orm.Query,
        model: Type[Base],
        params: Union[CollectionParameters, QuerySource, None] = None,
        nulls: NullOrdering = NullOrdering.LAST
) -> Window:
    """
    Apply the collection parameters to a query and return the requested window of rows

    The rows are ordered by the requested column (if any), with the primary
    key as tie breaker, which equals a stable sort of the rows in primary
    key order. Reversing inverts this whole ordering, including the
    placement of NULL values determined by the null ordering policy.

    The total is counted before the rows are selected. An offset at or
    beyond the total doesn't select any rows, and the SQL limit is capped
    at the number of rows remaining after the offset. Run it in a session
    with snapshot (repeatable read) isolation if the page must exactly
    match the total under concurrent writes; otherwise concurrently
    deleted rows may leave the window short.

    :param query: query selecting the (already filtered) collection of models
    :param model: class of the SQLAlchemy model selected by the query
    :param params: collection parameters or a raw mapping of query parameters
    :param nulls: policy for rows where the sort column is NULL
    :return: named tuple of the window's rows, the total row count and the resolved sort attribute
    :raises InvalidParameter: when the sort attribute doesn't exist or NULL values are rejected
    """

    params = ensure_parameters(params)
    total = query.order_by(None).count()

    order = []
    sort = None
    if params.sort is not None:
        columns = sortable_columns(model)
        sort = resolve_attribute(params.sort, columns)
        if sort is None:
            raise InvalidParameter("sort", params.sort, "no such attribute")
        column = columns[sort]

        if nulls == NullOrdering.REJECT:
            missing = query.filter(column.is_(None)).order_by(None).count()
            if missing:
                raise InvalidParameter("sort", sort, f"{missing} item(s) have no value for this attribute")

        nulls_last = nulls != NullOrdering.FIRST
        if params.reverse:
            expression = column.desc()
            nulls_last = not nulls_last
        else:
            expression = column.asc()
        order.append(sqlalchemy.nulls_last(expression) if nulls_last else sqlalchemy.nulls_first(expression))

    for key in sqlalchemy.inspect(model).primary_key:
        order.append(key.desc() if params.reverse else key.asc())

    remaining = total - params.offset
    if remaining <= 0:
        logger.debug(f"Offset {params.offset} of {model.__name__} is beyond the total of {total}")
        return Window(items=[], total=total, sort=sort)

    # the window never exceeds the counted total, even if rows were added meanwhile
    limit = remaining if params.limit is None else min(params.limit, remaining)
    query = query.order_by(None).order_by(*order).offset(params.offset).limit(limit)

    logger.debug(f"Fetching window of {model.__name__} at offset {params.offset} (limit {limit}, total {total})")
    return Window(items=query.all(), total=total, sort=sort)
