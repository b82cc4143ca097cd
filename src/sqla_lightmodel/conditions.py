from __future__ import annotations

import datetime as dt
import enum
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Final, Literal

import sqlalchemy as sa

from .exceptions import InvalidConditionKindError, UnknownColumnError


PRIMARY_KEY_PARAM: Final[str] = "id"
VALUE_PARAM_PREFIX: Final[str] = "value_"

SCALAR_TYPES: Final[tuple[type, ...]] = (
    str,
    bytes,
    bool,
    int,
    float,
    Decimal,
    dt.date,
    dt.time,
    dt.datetime,
    dt.timedelta,
    uuid.UUID,
    enum.Enum,
)

Operator = Literal["=", "IN"]


@dataclass(slots=True, frozen=True)
class Predicate:
    """One compiled filter fragment: ``column = :param`` or ``column IN (...)``.

    ``param`` is the bind parameter name for equality predicates and ``None``
    for ``IN`` predicates, whose values are expanded by SQLAlchemy.
    """

    column: str
    operator: Operator
    value: Any
    param: str | None = None


def is_scalar(value: Any) -> bool:
    return value is None or isinstance(value, SCALAR_TYPES)


def compile_condition(
    condition: Any,
    *,
    primary_key: str,
    single: bool,
) -> tuple[Predicate, ...]:
    """Translate a caller condition into predicates, combined later with AND.

    Args:
        condition: ``None``, a scalar primary-key value (only when *single*), or
            a mapping of column name to a scalar or a list/tuple of scalars.
        primary_key: Column used for scalar conditions.
        single: Whether the condition targets a single row, enabling the
            scalar primary-key shorthand.

    Returns:
        Predicates in the mapping's insertion order. Empty for ``None`` or an
        empty mapping.

    Raises:
        InvalidConditionKindError: For a scalar outside single-row lookups, a
            non-mapping non-scalar condition, or a mapping value that is
            neither a scalar nor a list/tuple.

    Example:
        >>> compile_condition({"active": 1, "code": [7, 8, 9]}, primary_key="id", single=False)
        (Predicate(column='active', operator='=', value=1, param='value_active'),
         Predicate(column='code', operator='IN', value=(7, 8, 9), param=None))
    """
    if condition is None:
        return ()

    if isinstance(condition, Mapping):
        return tuple(_compile_item(str(key), value) for key, value in condition.items())

    if single and is_scalar(condition):
        return (Predicate(primary_key, "=", condition, PRIMARY_KEY_PARAM),)

    raise InvalidConditionKindError(condition)


def _compile_item(key: str, value: Any) -> Predicate:
    if isinstance(value, (list, tuple)):
        values = tuple(value)
        for item in values:
            if not is_scalar(item):
                raise InvalidConditionKindError(value, key)

        return Predicate(key, "IN", values)

    if is_scalar(value):
        return Predicate(key, "=", value, f"{VALUE_PARAM_PREFIX}{key}")

    raise InvalidConditionKindError(value, key)


def predicate_clauses(
    predicates: Sequence[Predicate],
    table: sa.FromClause,
) -> list[sa.ColumnElement[bool]]:
    """Render *predicates* as SQLAlchemy boolean clauses against *table*.

    Equality binds a named parameter (``posts.active = :value_active``),
    equality with ``None`` renders ``IS NULL`` and lists become ``IN``. A
    parameter name used twice gets a numeric suffix (``value_active_1``).

    Raises:
        UnknownColumnError: If a predicate names a column *table* lacks.
    """
    clauses: list[sa.ColumnElement[bool]] = []
    seen: dict[str, int] = {}
    for predicate in predicates:
        try:
            column = table.c[predicate.column]
        except KeyError:
            raise UnknownColumnError(
                predicate.column,
                getattr(table, "name", str(table)),
                [c.key for c in table.c],
            ) from None

        if predicate.operator == "IN":
            clauses.append(column.in_(predicate.value))
        elif predicate.value is None:
            clauses.append(column.is_(None))
        else:
            param = predicate.param or f"{VALUE_PARAM_PREFIX}{predicate.column}"
            if param in seen:
                seen[param] += 1
                param = f"{param}_{seen[param]}"
            else:
                seen[param] = 0
            clauses.append(column == sa.bindparam(param, predicate.value, type_=column.type))

    return clauses
