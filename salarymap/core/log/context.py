"""Per-task key/value context prepended to log lines.

Requests, background loads and the CLI bind what they are working on (the
active filter, the load job) and every record emitted inside that scope is
prefixed with it, e.g. ``[job=dataset_load] Read 3 counties``.
"""
from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import Iterator, Mapping

_fields: contextvars.ContextVar[Mapping[str, object]] = contextvars.ContextVar(
    "salarymap_log_fields", default={}
)

# Filter fields left at the wildcard add nothing to a log line.
_SKIPPED_VALUES = (None, "", "*")


def _merge(values: Mapping[str, object]) -> dict[str, object]:
    merged = dict(_fields.get())
    merged.update({k: v for k, v in values.items() if v not in _SKIPPED_VALUES})
    return merged


class LogContext:
    """Bind fields to the current task's log records."""

    def bind(self, **values: object) -> None:
        """Bind ``values`` until the current context ends."""
        _fields.set(_merge(values))

    @contextmanager
    def scoped(self, **values: object) -> Iterator[None]:
        """Bind ``values`` for the duration of a ``with`` block only."""

        token = _fields.set(_merge(values))
        try:
            yield
        finally:
            _fields.reset(token)

    def fields(self) -> dict[str, object]:
        return dict(_fields.get())


class ContextFilter(logging.Filter):
    """Render the bound fields into ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        fields = _fields.get()
        record.context = (
            "[" + " ".join(f"{key}={value}" for key, value in fields.items()) + "] " if fields else ""
        )
        return True


log_context = LogContext()
