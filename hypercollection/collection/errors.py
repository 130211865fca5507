"""
Exceptions raised by the collection query evaluator
"""

from typing import Any


class InvalidParameter(ValueError):
    """
    Exception for query parameters that can't be applied to a collection

    Invalid parameters are never corrected silently. The attribute
    `parameter` holds the (normalized) name of the offending query
    parameter, `value` its rejected value and `reason` a short
    human-readable explanation that may be shown to API clients.
    """

    def __init__(self, parameter: str, value: Any, reason: str):
        super().__init__(f"Invalid value {value!r} for parameter {parameter!r}: {reason}")
        self.parameter = parameter
        self.value = value
        self.reason = reason

    @property
    def message(self) -> str:
        return f"Invalid query parameter {self.parameter!r}: {self.reason}"
