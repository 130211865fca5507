"""
Case-insensitive parsing of flexible collection query parameters

Query parameters usually arrive as a mapping of strings decoded from
the URL query string. Parameter names as well as enumerated values
are matched case-insensitively here, before any of them reach the
evaluator. Unknown or malformed values are rejected, never corrected.
"""

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import pydantic

from .errors import InvalidParameter
from ..schemas.collection import CollectionParameters, Details


logger = logging.getLogger(__name__)

PARAMETER_NAMES: Tuple[str, ...] = tuple(CollectionParameters.model_fields)

QuerySource = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

_TRUE_VALUES = {"", "1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def normalize_keys(query: QuerySource, strict: bool = True) -> Dict[str, Any]:
    """
    Return a dictionary of the recognized parameters with lowercase names

    :param query: mapping or iterable of key-value pairs (e.g. multi-items of a query string)
    :param strict: switch to reject unknown parameter names instead of ignoring them
    :return: dictionary of recognized parameter names and their raw values
    :raises InvalidParameter: for unknown names (strict mode) or names given more than once
    """

    pairs = query.items() if isinstance(query, Mapping) else query
    result = {}
    for key, value in pairs:
        name = str(key).strip().lower()
        if name not in PARAMETER_NAMES:
            if strict:
                raise InvalidParameter(str(key), value, "unknown query parameter")
            continue
        if name in result:
            raise InvalidParameter(name, value, "parameter given more than once")
        result[name] = value
    return result


def parse_boolean(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        folded = value.strip().lower()
        if folded in _TRUE_VALUES:
            return True
        if folded in _FALSE_VALUES:
            return False
    raise InvalidParameter(name, value, "expected a boolean value like 'true' or 'false'")


def parse_count(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidParameter(name, value, "expected a non-negative integer")
    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        try:
            number = int(value.strip(), 10)
        except ValueError as exc:
            raise InvalidParameter(name, value, "expected a non-negative integer") from exc
    else:
        raise InvalidParameter(name, value, "expected a non-negative integer")
    if number < 0:
        raise InvalidParameter(name, value, "must not be negative")
    return number


def parse_details(value: Any) -> Details:
    if isinstance(value, Details):
        return value
    if isinstance(value, str):
        try:
            return Details(value.strip().lower())
        except ValueError:
            pass
    choices = ", ".join(repr(d.value) for d in Details)
    raise InvalidParameter("details", value, f"expected one of {choices}")


def parse_parameters(query: QuerySource, strict: bool = True) -> CollectionParameters:
    """
    Parse raw query parameters into validated collection parameters

    :param query: mapping or iterable of key-value pairs with string (or already typed) values
    :param strict: switch to reject unknown parameter names instead of ignoring them
    :return: frozen set of validated collection parameters
    :raises InvalidParameter: when any parameter is unknown, duplicated or malformed
    """

    values = normalize_keys(query, strict)
    kwargs = {}

    sort = values.get("sort")
    if sort is not None:
        sort = str(sort).strip()
        if not sort:
            raise InvalidParameter("sort", values["sort"], "attribute name must not be empty")
        kwargs["sort"] = sort
    if values.get("reverse") is not None:
        kwargs["reverse"] = parse_boolean("reverse", values["reverse"])
    if values.get("limit") is not None:
        kwargs["limit"] = parse_count("limit", values["limit"])
    if values.get("offset") is not None:
        kwargs["offset"] = parse_count("offset", values["offset"])
    if values.get("details") is not None:
        kwargs["details"] = parse_details(values["details"])

    try:
        return CollectionParameters(**kwargs)
    except pydantic.ValidationError as exc:
        error = exc.errors()[0]
        name = str(error["loc"][0]) if error.get("loc") else "query"
        raise InvalidParameter(name, error.get("input"), error["msg"]) from exc


def validate_parameters(params: CollectionParameters) -> CollectionParameters:
    """
    Check already constructed parameters once more (they may have skipped validation)
    """

    if params.limit is not None and params.limit < 0:
        raise InvalidParameter("limit", params.limit, "must not be negative")
    if params.offset < 0:
        raise InvalidParameter("offset", params.offset, "must not be negative")
    if not isinstance(params.details, Details):
        params = params.model_copy(update={"details": parse_details(params.details)})
    return params


def ensure_parameters(params: Optional[Union[CollectionParameters, QuerySource]]) -> CollectionParameters:
    if params is None:
        return CollectionParameters()
    if isinstance(params, CollectionParameters):
        return validate_parameters(params)
    return parse_parameters(params)
