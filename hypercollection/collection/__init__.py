"""
Collection query evaluator for flexible collection envelopes

Typical usage within a request handler:

.. code-block::

    params = parse_parameters(query_params)
    envelope = evaluate(resources, params, links=build_link)
"""

from .errors import InvalidParameter
from .evaluator import (
    NullOrdering,
    attribute_names,
    evaluate,
    evaluate_window,
    query_string_link,
    resolve_attribute,
    sort_resources
)
from .parameters import PARAMETER_NAMES, parse_parameters
