"""Basic sqla-lightmodel usage examples.

Demonstrates lookups by primary key and by condition, relations with
arguments, hooks, indexed results, array mode, count and exists.

NOTE: This file is illustrative -- it won't run standalone
without a database and seeded data.
"""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy import orm

from .models import Base, Categories, Posts, PostsByCode


# ── 1. Create the schema once at startup ─────────────────────────────

engine = sa.create_engine("sqlite:///:memory:")


def setup() -> None:
    with engine.begin() as conn:
        Base.metadata.create_all(conn)


# ── 2. Single rows ───────────────────────────────────────────────────


def get_post(session: orm.Session, post_id: int) -> Any:
    # WHERE posts.id = :id
    return Posts.find(session).one(post_id)


def get_post_by_code(session: orm.Session, code: int) -> Any:
    # __primary_key__ = "code": WHERE posts.code = :id
    return PostsByCode.find_one(session, code)


def get_active_post(session: orm.Session, code: int) -> Any:
    return Posts.find(session).one({"active": 1, "code": code})


# ── 3. Many rows ─────────────────────────────────────────────────────


def get_active_posts(session: orm.Session) -> list[Any]:
    # WHERE posts.active = :value_active AND posts.code IN (7, 8, 9)
    return Posts.find(session).all({"active": 1, "code": [7, 8, 9]})


def get_posts_by_code(session: orm.Session) -> dict[int, Any]:
    return Posts.find(session).index_by("code").all()


def get_posts_as_dicts(session: orm.Session) -> list[dict[str, Any]]:
    return Posts.find(session).as_array().order_by("id").limit(10).all()


# ── 4. Relations and hooks ───────────────────────────────────────────


def get_posts_with_comments(session: orm.Session) -> list[Any]:
    return Posts.find(session).with_relations("comments", "author").all({"active": 1})


def get_posts_with_latest_comments(session: orm.Session) -> list[Any]:
    # comments(row, 3)
    return Posts.find(session).with_relations({"comments": [3]}).all()


def get_localized_posts(session: orm.Session, lang: str) -> list[Any]:
    return Posts.find(session).with_relations("author").with_hooks({"langs": [lang]}).all()


def get_category_tree(session: orm.Session) -> Any:
    return Categories.find(session).with_relations("children").one({"parent_id": None})


# ── 5. Count and exists ──────────────────────────────────────────────


def count_inactive_posts(session: orm.Session) -> int:
    return Posts.find(session).count({"active": 0})


def user_has_posts(session: orm.Session, user_id: int) -> bool:
    return Posts.find(session).exists({"author_id": user_id})
