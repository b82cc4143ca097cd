"""Minimal tables and light models for sqla-lightmodel examples."""

from __future__ import annotations

from typing import Any

import sqlalchemy as sa
from sqlalchemy import orm

from sqla_lightmodel import LightModel, operation


class Base(orm.DeclarativeBase):
    pass


class User(Base):
    __tablename__ = "users"

    id: orm.Mapped[int] = orm.mapped_column(primary_key=True)
    name: orm.Mapped[str] = orm.mapped_column(sa.String(100))


class Post(Base):
    __tablename__ = "posts"

    id: orm.Mapped[int] = orm.mapped_column(primary_key=True)
    code: orm.Mapped[int] = orm.mapped_column(unique=True)
    active: orm.Mapped[int] = orm.mapped_column(default=1)
    name_en: orm.Mapped[str] = orm.mapped_column(sa.String(200))
    name_uz: orm.Mapped[str] = orm.mapped_column(sa.String(200))
    author_id: orm.Mapped[int] = orm.mapped_column(sa.ForeignKey("users.id"))


class Comment(Base):
    __tablename__ = "comments"

    id: orm.Mapped[int] = orm.mapped_column(primary_key=True)
    text: orm.Mapped[str] = orm.mapped_column(sa.Text)
    post_id: orm.Mapped[int] = orm.mapped_column(sa.ForeignKey("posts.id"))


class Category(Base):
    __tablename__ = "categories"

    id: orm.Mapped[int] = orm.mapped_column(primary_key=True)
    name: orm.Mapped[str] = orm.mapped_column(sa.String(100))
    parent_id: orm.Mapped[int | None] = orm.mapped_column(
        sa.ForeignKey("categories.id"), nullable=True
    )


class Users(LightModel):
    __table__ = User


class Comments(LightModel):
    __table__ = Comment


class Posts(LightModel):
    __table__ = Post

    @operation
    def comments(self, row: Any, limit: int | None = None) -> None:
        # pass the fetch mode down so nested rows match the parent rows
        row["comments"] = (
            Comments.find(self.bind)
            .with_fetch_mode(self.fetch_mode)
            .order_by("id")
            .limit(limit)
            .all({"post_id": row["id"]})
        )

    @operation
    def author(self, row: Any) -> None:
        row["author"] = Users.find(self.bind).one(row["author_id"])

    @operation
    def langs(self, row: Any, lang: str) -> None:
        row["name"] = row[f"name_{lang}"]


class PostsByCode(Posts):
    __primary_key__ = "code"


class Categories(LightModel):
    __table__ = Category

    @operation
    def children(self, row: Any) -> None:
        row["children"] = (
            Categories.find(self.bind)
            .with_relations("children")
            .all({"parent_id": row["id"]})
        )
