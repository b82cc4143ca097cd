from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from typing import Any, ClassVar


if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

import sqlalchemy as sa

from .conditions import Predicate, compile_condition, predicate_clauses
from .datastructures import frozendict
from .exceptions import UnknownColumnError
from .executor import DEFAULT_FETCH_MODE, Bind, Executor, FetchMode, Row
from .operations import OperationSpec, collect_operations, dispatch, merge_specs, normalize_specs, resolve
from .tools import TableSource, get_primary_key, get_table


class LightModel:
    """Read-only, active-record style query helper over a single table.

    Subclasses name their table (a ``sa.Table`` or a declarative model class)
    and may register relation/hook methods with
    :func:`~sqla_lightmodel.operations.operation`. Every instance is one query:
    configure it fluently, then call a terminal operation.

    Example::

        class Post(LightModel):
            __table__ = posts_table

            @operation
            def comments(self, row):
                row["comments"] = Comment.find(self.bind).all({"post_id": row["id"]})

            @operation
            def langs(self, row, lang):
                row["name"] = row[f"name_{lang}"]

        Post.find(session).all()                          # every row, as Records
        Post.find(session).one(8)                         # by primary key
        Post.find(session).all({"active": 1, "code": [7, 8, 9]})
        Post.find(session).with_relations("comments").with_hooks({"langs": "en"}).all()
        Post.find(session).index_by("code").as_array().all()
        Post.find(session).count({"active": 0})
        Post.find(session).exists({"user_id": 3})

    Terminal operations do not modify the configuration, so one instance can
    run several of them. Instances are not thread-safe.

    Fetch mode is per query: relations that issue nested queries get the
    default mode unless they pass ``self.fetch_mode`` on explicitly::

        Comment.find(self.bind).with_fetch_mode(self.fetch_mode).all(...)
    """

    __table__: ClassVar[TableSource | None] = None
    __primary_key__: ClassVar[str | None] = None
    __operations__: ClassVar[frozendict[str, Callable[..., Any]]] = frozendict()

    __slots__ = (
        "_executor",
        "_fetch_mode",
        "_hooks",
        "_index_by",
        "_limit",
        "_offset",
        "_order_by",
        "_predicates",
        "_relations",
        "_where",
        "bind",
    )

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__operations__ = collect_operations(cls)

    def __init__(self, bind: Bind) -> None:
        self.bind = bind
        self._executor = Executor(bind)
        self._predicates: tuple[Predicate, ...] = ()
        self._where: tuple[sa.ColumnElement[bool], ...] = ()
        self._relations: tuple[OperationSpec, ...] = ()
        self._hooks: tuple[OperationSpec, ...] = ()
        self._index_by: str | None = None
        self._fetch_mode: FetchMode = DEFAULT_FETCH_MODE
        self._order_by: tuple[sa.ColumnElement[Any], ...] = ()
        self._limit: int | None = None
        self._offset: int | None = None

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} table={self.table_name()!r} "
            f"relations={[s.name for s in self._relations]} "
            f"hooks={[s.name for s in self._hooks]} "
            f"index_by={self._index_by!r} fetch_mode={self._fetch_mode.value!r}>"
        )

    # class-level metadata

    @classmethod
    def table(cls) -> sa.Table:
        """The table this model reads from."""
        if cls.__table__ is None:
            raise TypeError(f"{cls.__name__} must define __table__ to be queried")
        return get_table(cls.__table__)

    @classmethod
    def table_name(cls) -> str:
        return cls.table().name

    @classmethod
    def primary_key(cls) -> str:
        """Primary-key column name: ``__primary_key__`` if set, else the table's own."""
        if cls.__primary_key__:
            return cls.__primary_key__
        return get_primary_key(cls.table())

    # construction shortcuts

    @classmethod
    def find(cls, bind: Bind) -> Self:
        """Start a new query on *bind*."""
        return cls(bind)

    @classmethod
    def find_one(cls, bind: Bind, condition: Any) -> Row | None:
        """Shorthand for ``cls.find(bind).one(condition)``."""
        return cls.find(bind).one(condition)

    @classmethod
    def find_all(cls, bind: Bind, condition: Any = None) -> list[Row] | dict[Any, Row]:
        """Shorthand for ``cls.find(bind).all(condition)``."""
        return cls.find(bind).all(condition)

    # configuration

    @property
    def fetch_mode(self) -> FetchMode:
        return self._fetch_mode

    @property
    def relations(self) -> tuple[OperationSpec, ...]:
        return self._relations

    @property
    def hooks(self) -> tuple[OperationSpec, ...]:
        return self._hooks

    def with_fetch_mode(self, mode: FetchMode | str) -> Self:
        """Materialise rows as ``Record`` (``"object"``) or ``dict`` (``"mapping"``)."""
        self._fetch_mode = FetchMode(mode)
        return self

    def as_array(self) -> Self:
        """Return rows as plain ``dict`` objects instead of ``Record``."""
        return self.with_fetch_mode(FetchMode.MAPPING)

    def with_relations(self, *specs: Any) -> Self:
        """Add operations that load related data into each fetched row.

        Args:
            *specs: Operation names, mappings of name to positional arguments,
                or iterables of those. May be called repeatedly; order is kept.

        Raises:
            UnresolvedOperationError: If a name is not a registered operation.
        """
        self._relations = merge_specs(self._relations, self._checked(specs))
        return self

    def with_hooks(self, *specs: Any) -> Self:
        """Same as :meth:`with_relations`, for operations run after all relations."""
        self._hooks = merge_specs(self._hooks, self._checked(specs))
        return self

    with_ = with_relations
    after_find = with_hooks

    def index_by(self, column: str | None) -> Self:
        """Key the result of :meth:`all` by *column* instead of position.

        *column* may also be a field written by a relation or hook. On
        duplicate values the last row wins. ``None`` switches indexing off.
        """
        self._index_by = column
        return self

    def where(self, *conditions: Any) -> Self:
        """Add filters applied to every terminal operation, joined with AND.

        Each argument is either a SQLAlchemy boolean clause or a condition
        mapping as accepted by :meth:`all`.
        """
        for condition in conditions:
            if isinstance(condition, Mapping):
                self._predicates = (
                    *self._predicates,
                    *compile_condition(condition, primary_key=self.primary_key(), single=False),
                )
            else:
                self._where = (*self._where, condition)
        return self

    def order_by(self, *clauses: Any) -> Self:
        """Order rows of :meth:`one` and :meth:`all`. Column names or clauses."""
        table = self.table()
        self._order_by = (
            *self._order_by,
            *(self._column(table, c) if isinstance(c, str) else c for c in clauses),
        )
        return self

    def limit(self, limit: int | None) -> Self:
        """Cap the rows returned by :meth:`all`; ``None`` removes the cap."""
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be a non-negative integer, got {limit}")
        self._limit = limit
        return self

    def offset(self, offset: int | None) -> Self:
        """Skip rows in :meth:`one` and :meth:`all`; ``None`` removes the offset."""
        if offset is not None and offset < 0:
            raise ValueError(f"offset must be a non-negative integer, got {offset}")
        self._offset = offset
        return self

    # terminal operations

    def one(self, condition: Any = None) -> Row | None:
        """Fetch the first matching row.

        Args:
            condition: A primary-key value, a condition mapping, or ``None``.

        Returns:
            The row with relations and hooks applied, or ``None``.
        """
        query = self._ordered(self._select(self.table(), condition, single=True)).limit(1)
        row = self._executor.one(query, self._fetch_mode)
        if row is not None and (self._relations or self._hooks):
            self._apply(row)

        return row

    def all(self, condition: Any = None) -> list[Row] | dict[Any, Row]:
        """Fetch every matching row.

        Args:
            condition: A condition mapping or ``None``. Values that are lists
                or tuples become ``IN`` filters, keys are joined with AND.

        Returns:
            Rows in fetch order, or a ``dict`` keyed by the :meth:`index_by`
            column when one is set.
        """
        query = self._ordered(self._select(self.table(), condition, single=False))
        if self._limit is not None:
            query = query.limit(self._limit)
        rows = self._executor.rows(query, self._fetch_mode)

        if not rows:
            return {} if self._index_by is not None else rows

        if self._relations or self._hooks:
            for row in rows:
                self._apply(row)

        if self._index_by is None:
            return rows

        return {self._index_value(row): row for row in rows}

    def count(self, condition: Any = None) -> int:
        """Return the number of matching rows."""
        query = self._select(sa.func.count(), condition, single=False)
        return int(self._executor.scalar(query) or 0)

    def exists(self, condition: Any = None) -> bool:
        """Return whether any row matches. Accepts a primary-key value like :meth:`one`."""
        table = self.table()
        query = self._select(self._column(table, self.primary_key()), condition, single=True)
        return self._executor.has_row(query.limit(1))

    # helpers

    def get_pk(self, row: Row) -> Any:
        """Return the primary-key value of *row*."""
        return row[self.primary_key()]

    def _checked(self, specs: tuple[Any, ...]) -> tuple[OperationSpec, ...]:
        normalized = normalize_specs(*specs)
        for spec in normalized:
            resolve(type(self), spec.name)
        return normalized

    def _apply(self, row: Row) -> None:
        dispatch(self, row, self._relations)
        dispatch(self, row, self._hooks)

    def _select(self, columns: Any, condition: Any, *, single: bool) -> sa.Select[Any]:
        table = self.table()
        predicates = (
            *self._predicates,
            *compile_condition(condition, primary_key=self.primary_key(), single=single),
        )
        return (
            sa.select(columns)
            .select_from(table)
            .where(*predicate_clauses(predicates, table), *self._where)
        )

    def _ordered(self, query: sa.Select[Any]) -> sa.Select[Any]:
        if self._order_by:
            query = query.order_by(*self._order_by)
        if self._offset is not None:
            query = query.offset(self._offset)
        return query

    def _index_value(self, row: Row) -> Any:
        try:
            return row[self._index_by]  # type: ignore[index]
        except KeyError:
            raise UnknownColumnError(self._index_by, self.table_name(), list(row)) from None

    @staticmethod
    def _column(table: sa.Table, name: str) -> sa.Column[Any]:
        try:
            return table.c[name]
        except KeyError:
            raise UnknownColumnError(name, table.name, [c.key for c in table.c]) from None
