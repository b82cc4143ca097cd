"""Exceptions raised by sqla_lightmodel.

Everything inherits from :class:`LightModelError` and from the builtin that
best describes the failure, so callers may catch either. Errors coming from
SQLAlchemy or the database driver are never wrapped.
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import get_close_matches
from typing import Any


class LightModelError(Exception):
    """Base exception for all sqla_lightmodel errors."""


class InvalidConditionKindError(LightModelError, TypeError):
    """A condition, or one of its values, has an unsupported shape."""

    def __init__(self, value: Any, key: str | None = None) -> None:
        self.value = value
        self.key = key
        kind = type(value).__name__
        if key is None:
            message = f"Unsupported condition of type {kind!r}: {value!r}"
        else:
            message = (
                f"Unsupported value of type {kind!r} for column {key!r}: {value!r}. "
                "Expected a scalar or a list/tuple of scalars."
            )
        super().__init__(message)


class UnresolvedOperationError(LightModelError, AttributeError):
    """A relation or hook name is not a registered operation of the model."""

    def __init__(self, name: str, model: type, available: Iterable[str]) -> None:
        self.name = name
        self.model = model
        self.available = sorted(available)
        self.suggestions = get_close_matches(name, self.available, n=3, cutoff=0.6)

        message = f"Model {model.__name__!r} has no operation {name!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        message += f" Registered operations: {self.available}"
        super().__init__(message)


class UnknownColumnError(LightModelError, ValueError):
    """A condition or index-by column does not exist."""

    def __init__(self, column: str, source: str, available: Iterable[str]) -> None:
        self.column = column
        self.source = source
        self.available = list(available)
        super().__init__(
            f"Column {column!r} not found in {source!r}. Available: {self.available}"
        )
