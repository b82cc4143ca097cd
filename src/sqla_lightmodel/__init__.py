"""Lightweight record retrieval over SQLAlchemy Core.

sqla_lightmodel gives a table an active-record style read API without an ORM
identity map. Subclass ``LightModel`` with a ``__table__``, register relation
and hook methods with ``@operation``, then query with
``Model.find(session).with_relations(...).all({...})`` -- key/value and
IN-list conditions, per-row relation loading, post-fetch hooks and indexed
results are handled for you.
"""

from ._version import __version__, __version_tuple__
from .conditions import Predicate, compile_condition, predicate_clauses
from .datastructures import Record, frozendict
from .exceptions import (
    InvalidConditionKindError,
    LightModelError,
    UnknownColumnError,
    UnresolvedOperationError,
)
from .executor import DEFAULT_FETCH_MODE, Executor, FetchMode
from .model import LightModel
from .operations import OperationSpec, normalize_specs, operation
from .tools import (
    DEFAULT_PRIMARY_KEY,
    get_primary_key,
    get_table,
    get_table_name,
    lightmodel_cache_clear,
    lightmodel_cache_info,
)


__all__ = (
    "DEFAULT_FETCH_MODE",
    "DEFAULT_PRIMARY_KEY",
    "Executor",
    "FetchMode",
    "InvalidConditionKindError",
    "LightModel",
    "LightModelError",
    "OperationSpec",
    "Predicate",
    "Record",
    "UnknownColumnError",
    "UnresolvedOperationError",
    "__version__",
    "__version_tuple__",
    "compile_condition",
    "frozendict",
    "get_primary_key",
    "get_table",
    "get_table_name",
    "lightmodel_cache_clear",
    "lightmodel_cache_info",
    "normalize_specs",
    "operation",
    "predicate_clauses",
)
