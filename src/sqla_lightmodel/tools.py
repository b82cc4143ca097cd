from __future__ import annotations

from functools import lru_cache
from typing import Any, Final

import sqlalchemy as sa


DEFAULT_PRIMARY_KEY: Final[str] = "id"

TableSource = sa.Table | type


@lru_cache
def _get_table(source: TableSource) -> sa.Table:
    """Return the ``Table`` behind *source* (cached)."""
    if isinstance(source, sa.Table):
        return source

    table = getattr(source, "__table__", None)
    if not isinstance(table, sa.Table):
        raise TypeError(
            f"Expected a sqlalchemy Table or a mapped class with __table__, got {source!r}"
        )

    return table


@lru_cache
def _get_primary_key(source: TableSource) -> str:
    """Return the name of the first primary-key column of *source* (cached)."""
    primary_key = _get_table(source).primary_key
    return next(iter(primary_key)).name if primary_key.columns else DEFAULT_PRIMARY_KEY


def get_table(source: TableSource) -> sa.Table:
    """Get the ``sa.Table`` for a table or a declarative model class.

    Args:
        source: ``sa.Table`` or a class exposing ``__table__``.

    Returns:
        The underlying table.

    Raises:
        TypeError: If *source* is neither.
    """
    return _get_table(source)


def get_table_name(source: TableSource) -> str:
    """Get the table name for a table or a declarative model class."""
    return _get_table(source).name


def get_primary_key(source: TableSource) -> str:
    """Get the primary-key column name of a table or model.

    Falls back to ``"id"`` for tables declared without a primary key.
    """
    return _get_primary_key(source)


def lightmodel_cache_info() -> dict[str, Any]:
    """Return LRU cache statistics for all internal caches."""
    return {fn.__name__: fn.cache_info() for fn in (_get_table, _get_primary_key)}


def lightmodel_cache_clear() -> None:
    """Clear all internal LRU caches."""
    for fn in (_get_table, _get_primary_key):
        fn.cache_clear()
