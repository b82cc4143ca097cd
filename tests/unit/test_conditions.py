from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal

import pytest
import sqlalchemy as sa
from sqlalchemy import orm

from sqla_lightmodel.conditions import Predicate, compile_condition, predicate_clauses
from sqla_lightmodel.exceptions import InvalidConditionKindError, UnknownColumnError

from ..models import Post, Posts, PostsByCode


def _sql(*clauses: sa.ColumnElement[bool], literal: bool = False) -> str:
    expr = sa.and_(*clauses)
    if literal:
        return str(expr.compile(compile_kwargs={"literal_binds": True}))
    return str(expr.compile())


class TestCompileScalar:
    def test_scalar_targets_primary_key(self) -> None:
        predicates = compile_condition(8, primary_key="id", single=True)

        assert predicates == (Predicate("id", "=", 8, "id"),)

    def test_scalar_uses_given_primary_key(self) -> None:
        predicates = compile_condition(8, primary_key="code", single=True)

        assert predicates == (Predicate("code", "=", 8, "id"),)

    @pytest.mark.parametrize(
        "value",
        [0, "abc", 1.5, Decimal("2.5"), dt.date(2024, 1, 1), uuid.UUID(int=1), True],
    )
    def test_scalar_kinds(self, value: object) -> None:
        (predicate,) = compile_condition(value, primary_key="id", single=True)

        assert predicate.value == value
        assert predicate.operator == "="

    def test_scalar_without_single_target_fails(self) -> None:
        with pytest.raises(InvalidConditionKindError):
            compile_condition(8, primary_key="id", single=False)

    def test_unsupported_condition_object(self) -> None:
        with pytest.raises(InvalidConditionKindError, match="object"):
            compile_condition(object(), primary_key="id", single=True)


class TestCompileMapping:
    def test_none_is_empty(self) -> None:
        assert compile_condition(None, primary_key="id", single=True) == ()
        assert compile_condition(None, primary_key="id", single=False) == ()

    def test_empty_mapping_is_empty(self) -> None:
        assert compile_condition({}, primary_key="id", single=False) == ()

    def test_equality_param_derived_from_key(self) -> None:
        predicates = compile_condition({"active": 1}, primary_key="id", single=False)

        assert predicates == (Predicate("active", "=", 1, "value_active"),)

    def test_list_becomes_in_keeping_order(self) -> None:
        (predicate,) = compile_condition({"code": [9, 7, 8]}, primary_key="id", single=False)

        assert predicate.operator == "IN"
        assert predicate.value == (9, 7, 8)
        assert predicate.param is None

    def test_tuple_becomes_in(self) -> None:
        (predicate,) = compile_condition({"code": (7, 8)}, primary_key="id", single=False)

        assert predicate.operator == "IN"
        assert predicate.value == (7, 8)

    def test_one_predicate_per_key_in_order(self) -> None:
        predicates = compile_condition(
            {"active": 1, "code": [7, 8, 9], "title": "x"}, primary_key="id", single=True
        )

        assert [p.column for p in predicates] == ["active", "code", "title"]
        assert [p.operator for p in predicates] == ["=", "IN", "="]

    def test_mapping_with_single_target_is_not_primary_key(self) -> None:
        predicates = compile_condition({"active": 1, "code": 8}, primary_key="id", single=True)

        assert all(p.column != "id" for p in predicates)

    def test_none_value_is_scalar(self) -> None:
        (predicate,) = compile_condition({"published_on": None}, primary_key="id", single=False)

        assert predicate.operator == "="
        assert predicate.value is None

    @pytest.mark.parametrize("value", [{"a": 1}, {1, 2}, object(), [[1, 2]], [{"a": 1}]])
    def test_invalid_value_kinds(self, value: object) -> None:
        with pytest.raises(InvalidConditionKindError) as exc_info:
            compile_condition({"code": value}, primary_key="id", single=False)

        assert exc_info.value.key == "code"

    def test_invalid_kind_is_type_error(self) -> None:
        with pytest.raises(TypeError):
            compile_condition({"code": {1, 2}}, primary_key="id", single=False)


class TestPredicateClauses:
    def test_posts_scenario(self) -> None:
        table = Post.__table__
        predicates = compile_condition(
            {"active": 1, "code": [7, 8, 9]}, primary_key="id", single=False
        )
        clauses = predicate_clauses(predicates, table)

        assert "posts.active = :value_active" in _sql(*clauses)
        assert "posts.code IN (7, 8, 9)" in _sql(*clauses, literal=True)
        assert " AND " in _sql(*clauses)

    def test_primary_key_scenario(self) -> None:
        query = Posts(orm.Session())._select(Posts.table(), 8, single=True)
        compiled = query.compile()

        assert "posts.id = :id" in str(compiled)
        assert compiled.params["id"] == 8

    def test_overridden_primary_key(self) -> None:
        query = PostsByCode(orm.Session())._select(PostsByCode.table(), 8, single=True)
        compiled = query.compile()

        assert "posts.code = :id" in str(compiled)

    def test_none_renders_is_null(self) -> None:
        clauses = predicate_clauses([Predicate("published_on", "=", None)], Post.__table__)

        assert "posts.published_on IS NULL" in _sql(*clauses)

    def test_repeated_param_names_are_suffixed(self) -> None:
        predicates = [
            Predicate("active", "=", 1, "value_active"),
            Predicate("active", "=", 0, "value_active"),
        ]
        compiled = sa.and_(*predicate_clauses(predicates, Post.__table__)).compile()

        assert compiled.params == {"value_active": 1, "value_active_1": 0}

    def test_empty_predicates(self) -> None:
        assert predicate_clauses((), Post.__table__) == []

    def test_unknown_column(self) -> None:
        with pytest.raises(UnknownColumnError, match="Available") as exc_info:
            predicate_clauses([Predicate("nope", "=", 1, "value_nope")], Post.__table__)

        assert exc_info.value.column == "nope"
        assert "title" in exc_info.value.available
