from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any, Final

import sqlalchemy as sa
from sqlalchemy import orm

from .datastructures import Record


logger = logging.getLogger(__name__)

Bind = orm.Session | orm.scoped_session | sa.Connection
Row = Record | dict[str, Any]


class FetchMode(str, enum.Enum):
    """How fetched rows are materialised."""

    OBJECT = "object"
    """:class:`~sqla_lightmodel.datastructures.Record` with attribute access."""
    MAPPING = "mapping"
    """Plain ``dict``."""
    ARRAY = "mapping"

    @classmethod
    def _missing_(cls, value: object) -> FetchMode | None:
        if isinstance(value, str):
            return cls.__members__.get(value.upper())
        return None


DEFAULT_FETCH_MODE: Final[FetchMode] = FetchMode.OBJECT


def materialize(row: Mapping[str, Any], mode: FetchMode) -> Row:
    """Copy a ``RowMapping`` into a mutable row for *mode*."""
    if mode is FetchMode.MAPPING:
        return dict(row)
    return Record(row)


class Executor:
    """Pass-through to ``execute()`` of a SQLAlchemy ``Session`` or ``Connection``.

    A ``scoped_session`` registry is accepted as well and proxies to its
    current session.

    The bind is borrowed: the executor never begins, commits, rolls back or
    closes anything, and database errors propagate unchanged.
    """

    __slots__ = ("bind",)

    def __init__(self, bind: Bind) -> None:
        if not isinstance(bind, (orm.Session, orm.scoped_session, sa.Connection)):
            raise TypeError(
                "bind must be a sqlalchemy Session, scoped_session or Connection, "
                f"got {type(bind).__name__}"
            )
        self.bind = bind

    def _execute(self, statement: sa.Executable) -> sa.Result[Any]:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Executing %s", statement)
        return self.bind.execute(statement)

    def rows(self, statement: sa.Select[Any], mode: FetchMode) -> list[Row]:
        """Return every row of *statement* in fetch order."""
        return [materialize(row, mode) for row in self._execute(statement).mappings()]

    def one(self, statement: sa.Select[Any], mode: FetchMode) -> Row | None:
        """Return the first row of *statement*, or ``None``."""
        row = self._execute(statement).mappings().first()
        return None if row is None else materialize(row, mode)

    def scalar(self, statement: sa.Select[Any]) -> Any | None:
        """Return the first column of the first row, or ``None`` when there is no row."""
        return self._execute(statement).scalar()

    def has_row(self, statement: sa.Select[Any]) -> bool:
        """Return whether *statement* yields at least one row, whatever its values."""
        return self._execute(statement).first() is not None
