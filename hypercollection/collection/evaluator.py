"""
Collection query evaluator producing flexible collection envelopes

The evaluator is a pure function of a collection snapshot and a set
of query parameters. It holds no state and performs no I/O, so it may
be called concurrently for any number of independent requests. Sources
that page on their own (e.g. database queries) should use the function
``evaluate_window`` together with a separately computed total instead
of materializing the whole collection for ``evaluate``.
"""

import enum
import logging
import functools
import itertools
import urllib.parse
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, Union

import pydantic

from .errors import InvalidParameter
from .parameters import QuerySource, ensure_parameters
from ..schemas.collection import CollectionParameters, Details, Envelope, PageReference


logger = logging.getLogger(__name__)

LinkBuilder = Callable[[PageReference], str]
Renderer = Callable[[Any], Any]

_MISSING = object()


@enum.unique
class NullOrdering(enum.Enum):
    """
    Policy for resources whose sort attribute is missing or ``None``
    """

    LAST = "last"
    FIRST = "first"
    REJECT = "reject"


def query_string_link(page: PageReference) -> str:
    """
    Build a relative link consisting of the query string of the referenced page only
    """

    return "?" + urllib.parse.urlencode(page.query())


def get_attribute(resource: Any, name: str, default: Any = None) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(name, default)
    return getattr(resource, name, default)


def attribute_names(resource: Any) -> List[str]:
    """
    Return the public attribute names of a resource, whatever its shape
    """

    if isinstance(resource, Mapping):
        return [str(k) for k in resource.keys()]
    if isinstance(resource, pydantic.BaseModel):
        return list(type(resource).model_fields)
    return [k for k in getattr(resource, "__dict__", {}) if not k.startswith("_")]


def resource_key(resource: Any, key: str = "id") -> Any:
    value = get_attribute(resource, key, _MISSING)
    if value is _MISSING:
        raise ValueError(f"Resource {resource!r} has no key attribute {key!r}")
    return value


def resource_body(resource: Any) -> Any:
    if isinstance(resource, pydantic.BaseModel):
        return resource.model_dump()
    if isinstance(resource, Mapping):
        return dict(resource)
    return {k: getattr(resource, k) for k in attribute_names(resource)}


def resolve_attribute(name: str, candidates: Iterable[str]) -> Optional[str]:
    """
    Find the attribute matching the given name case-insensitively

    :param name: attribute name as requested by the client
    :param candidates: known attribute names
    :return: the matching attribute name or None if there's no such attribute
    :raises InvalidParameter: when the name matches multiple attributes which differ in case only
    """

    folded = name.casefold()
    matches = sorted({c for c in candidates if c.casefold() == folded})
    if name in matches:
        return name
    if len(matches) > 1:
        raise InvalidParameter("sort", name, f"ambiguous attribute name, candidates: {', '.join(matches)}")
    return matches[0] if matches else None


def sort_resources(resources: List[Any], attribute: str, nulls: NullOrdering = NullOrdering.LAST) -> List[Any]:
    """
    Return a new list of the resources ordered ascending by one attribute

    The sort is stable, i.e. resources with equal keys keep their
    original relative order. Resources where the attribute is missing
    or ``None`` are placed according to the null ordering policy.

    :param resources: list of resources to be sorted
    :param attribute: exact name of the attribute used as sort key
    :param nulls: policy for resources without a value for the attribute
    :return: new sorted list of resources
    :raises InvalidParameter: for rejected null values or values that can't be compared
    """

    present = []
    absent = []
    for resource in resources:
        value = get_attribute(resource, attribute)
        if value is None:
            absent.append(resource)
        else:
            present.append((value, resource))

    if absent and nulls == NullOrdering.REJECT:
        raise InvalidParameter("sort", attribute, f"{len(absent)} item(s) have no value for this attribute")

    try:
        present.sort(key=lambda pair: pair[0])
    except TypeError as exc:
        raise InvalidParameter("sort", attribute, "the values of this attribute can't be compared") from exc

    ordered = [resource for _, resource in present]
    if nulls == NullOrdering.FIRST:
        return absent + ordered
    return ordered + absent


def evaluate(
        collection: Iterable[Any],
        params: Union[CollectionParameters, QuerySource, None] = None,
        *,
        attributes: Optional[Iterable[str]] = None,
        nulls: NullOrdering = NullOrdering.LAST,
        key: str = "id",
        links: Optional[LinkBuilder] = None,
        reference: Optional[Renderer] = None,
        render: Optional[Renderer] = None
) -> Envelope:
    """
    Evaluate the query parameters on a full collection and return the envelope of the requested page

    :param collection: snapshot of the whole (already filtered) collection
    :param params: collection parameters or a raw mapping of query parameters
    :param attributes: optional names of sortable attributes; when given, the sort
        attribute is validated against them even if the collection is empty
    :param nulls: policy for resources without a value for the sort attribute
    :param key: name of the attribute holding the stable key of a resource
    :param links: callable building the opaque `previous` and `next` links
    :param reference: callable rendering a resource at the `minimal` detail level
    :param render: callable rendering a resource at the `all` detail level
    :return: envelope of the requested page
    :raises InvalidParameter: when any of the parameters can't be applied
    """

    try:
        params = ensure_parameters(params)
        resources = list(collection)

        sort = None
        if params.sort is not None:
            sort = _resolve_sort(params.sort, resources, attributes)
            resources = sort_resources(resources, sort, nulls)
        if params.reverse:
            resources.reverse()
    except InvalidParameter as exc:
        logger.debug(f"Rejected collection query: {exc}")
        raise

    total = len(resources)
    end = None if params.limit is None else params.offset + params.limit
    page = resources[params.offset:end]
    return _make_envelope(page, total, params, sort, key, links, reference, render)


def evaluate_window(
        window: Iterable[Any],
        total: int,
        params: Union[CollectionParameters, QuerySource, None] = None,
        *,
        sort: Optional[str] = None,
        key: str = "id",
        links: Optional[LinkBuilder] = None,
        reference: Optional[Renderer] = None,
        render: Optional[Renderer] = None
) -> Envelope:
    """
    Wrap a page that was already sorted, reversed, offset and limited by its source into an envelope

    The window may be produced lazily; it won't be consumed beyond
    the requested limit. The total must be the size of the whole
    collection, independent of the paging parameters.

    :param window: iterable of the resources of the requested page
    :param total: number of resources in the whole collection
    :param params: collection parameters or a raw mapping of query parameters
    :param sort: attribute name the source actually sorted by (defaults to the requested one)
    :param key: name of the attribute holding the stable key of a resource
    :param links: callable building the opaque `previous` and `next` links
    :param reference: callable rendering a resource at the `minimal` detail level
    :param render: callable rendering a resource at the `all` detail level
    :return: envelope of the requested page
    :raises InvalidParameter: when any of the parameters can't be applied
    :raises ValueError: when the total is negative or the window exceeds the remaining items
    """

    try:
        params = ensure_parameters(params)
    except InvalidParameter as exc:
        logger.debug(f"Rejected collection query: {exc}")
        raise
    if total < 0:
        raise ValueError(f"Total must not be negative, got {total}")

    if params.limit is not None:
        window = itertools.islice(window, params.limit)
    page = list(window)
    if len(page) > max(0, total - params.offset):
        raise ValueError(f"Window of {len(page)} items exceeds the total of {total} at offset {params.offset}")

    return _make_envelope(page, total, params, sort or params.sort, key, links, reference, render)


def _resolve_sort(name: str, resources: List[Any], attributes: Optional[Iterable[str]]) -> str:
    candidates: Set[str] = set(attributes or [])
    for resource in resources:
        candidates.update(attribute_names(resource))
    if not candidates and attributes is None:
        return name
    attribute = resolve_attribute(name, candidates)
    if attribute is None:
        raise InvalidParameter("sort", name, "no such attribute")
    return attribute


def _make_envelope(
        page: List[Any],
        total: int,
        params: CollectionParameters,
        sort: Optional[str],
        key: str,
        links: Optional[LinkBuilder],
        reference: Optional[Renderer],
        render: Optional[Renderer]
) -> Envelope:
    links = links or query_string_link

    def _page(offset: int) -> PageReference:
        return PageReference(
            offset=offset,
            limit=params.limit,
            sort=sort,
            reverse=params.reverse,
            details=params.details
        )

    previous = None
    if params.offset > 0:
        previous_offset = 0 if params.limit is None else max(0, params.offset - params.limit)
        previous = links(_page(previous_offset))

    following = None
    if params.offset + len(page) < total:
        step = len(page) if params.limit is None else params.limit
        following = links(_page(params.offset + step))

    if params.details == Details.ALL:
        items = [(render or resource_body)(resource) for resource in page]
    else:
        items = [(reference or functools.partial(resource_key, key=key))(resource) for resource in page]

    return Envelope(
        items=items,
        sort=sort,
        reverse=params.reverse,
        limit=params.limit,
        offset=params.offset,
        previous=previous,
        next=following,
        total=total,
        details=params.details
    )
