"""Errors raised by the data pipeline and the projection engine."""
from __future__ import annotations


class DatasetLoadError(RuntimeError):
    """Raised when any of the raw datasets could not be read or parsed.

    The whole load is aborted; a partial dataset never reaches the join.
    """

    def __init__(self, source: str, reason: BaseException) -> None:
        super().__init__(f"Failed to load dataset '{source}': {reason}")
        self.source = source
        self.reason = reason


class UnknownStateError(LookupError):
    """Raised when a zoom selector does not resolve to a state geometry."""

    def __init__(self, code: str) -> None:
        super().__init__(f"No state geometry for selector '{code}'")
        self.code = code


class TopologyError(ValueError):
    """Raised when a TopoJSON document lacks a requested object."""
