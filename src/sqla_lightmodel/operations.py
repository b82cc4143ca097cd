"""Relations and hooks.

A model registers operations with the :func:`operation` decorator. Queries
refer to them by name through ``with_relations()`` and ``with_hooks()``; after
a row is fetched each named operation is called as
``operation(model, row, *args)`` in registration order and writes whatever it
loads or computes into ``row``.
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Final, TypeVar, overload

from .datastructures import frozendict
from .exceptions import UnresolvedOperationError


if TYPE_CHECKING:
    from .executor import Row
    from .model import LightModel

F = TypeVar("F", bound=Callable[..., Any])

_OPERATION_ATTR: Final[str] = "__lightmodel_operation__"


@dataclass(slots=True, frozen=True)
class OperationSpec:
    """A registered operation name plus the positional arguments to call it with."""

    name: str
    args: tuple[Any, ...] = field(default=())


@overload
def operation(fn: F, /) -> F: ...


@overload
def operation(*, name: str | None = None) -> Callable[[F], F]: ...


def operation(fn: F | None = None, /, *, name: str | None = None) -> F | Callable[[F], F]:
    """Register a model method as a relation or hook operation.

    The method receives the fetched row and any positional arguments given with
    its name in ``with_relations``/``with_hooks``, and writes its results into the row::

        class Post(LightModel):
            __table__ = posts

            @operation
            def comments(self, row, limit=None):
                row["comments"] = Comment.find(self.bind).limit(limit).all(
                    {"post_id": row["id"]}
                )

            @operation(name="title_upper")
            def _title_upper(self, row):
                row["title_upper"] = row["title"].upper()

    Args:
        fn: The method, when used without arguments.
        name: Name to register under. Defaults to the method name.
    """

    def decorate(func: F) -> F:
        setattr(func, _OPERATION_ATTR, name or func.__name__)
        return func

    return decorate if fn is None else decorate(fn)


def collect_operations(cls: type) -> frozendict[str, Callable[..., Any]]:
    """Build the operation registry of *cls*, including inherited operations.

    A subclass that redefines an operation's method without re-decorating it
    still overrides the registered implementation.
    """
    attributes: dict[str, str] = {}
    for klass in reversed(cls.__mro__):
        for attr, value in vars(klass).items():
            if (op_name := getattr(value, _OPERATION_ATTR, None)) is not None:
                attributes[op_name] = attr

    return frozendict({op_name: getattr(cls, attr) for op_name, attr in attributes.items()})


def _to_args(value: Any) -> tuple[Any, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _iter_specs(specs: Iterable[Any]) -> Iterable[OperationSpec]:
    for spec in specs:
        if isinstance(spec, OperationSpec):
            yield spec
        elif isinstance(spec, str):
            yield OperationSpec(spec)
        elif isinstance(spec, Mapping):
            for op_name, args in spec.items():
                yield OperationSpec(str(op_name), _to_args(args))
        elif isinstance(spec, Iterable):
            yield from _iter_specs(spec)
        else:
            raise TypeError(
                f"Expected an operation name, a mapping of name to arguments, "
                f"or an iterable of those; got {type(spec).__name__}"
            )


def normalize_specs(*specs: Any) -> tuple[OperationSpec, ...]:
    """Flatten spec arguments into ``OperationSpec`` objects, in order.

    Accepted forms, freely mixed::

        "comments"                          # no arguments
        {"comments": [a, b], "users": ()}   # positional arguments
        {"comments": a}                     # a single argument
        ["comments", {"users": [a]}]        # iterables of the above

    ``None`` as a value means no arguments; pass ``[None]`` to give a single
    ``None`` argument.
    """
    return tuple(_iter_specs(specs))


def merge_specs(
    current: tuple[OperationSpec, ...],
    added: Iterable[OperationSpec],
) -> tuple[OperationSpec, ...]:
    """Append *added* to *current*; a repeated name takes the new arguments in its old position."""
    merged = {spec.name: spec for spec in current}
    for spec in added:
        merged[spec.name] = spec
    return tuple(merged.values())


def resolve(model_cls: type[LightModel], name: str) -> Callable[..., Any]:
    """Return the registered operation *name* of *model_cls*.

    Raises:
        UnresolvedOperationError: If no such operation is registered.
    """
    operations = model_cls.__operations__
    try:
        return operations[name]
    except KeyError:
        raise UnresolvedOperationError(name, model_cls, operations) from None


def dispatch(model: LightModel, row: Row, specs: Iterable[OperationSpec]) -> Row:
    """Run *specs* against *row* in order and return the same, mutated, row."""
    for spec in specs:
        result = resolve(type(model), spec.name)(model, row, *spec.args)
        if result is not None:
            warnings.warn(
                f"Operation {spec.name!r} of {type(model).__name__} returned "
                f"{type(result).__name__}; the value is ignored. Write results into the row.",
                stacklevel=4,
            )

    return row
