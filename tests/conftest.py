from __future__ import annotations

import os
from collections.abc import Iterator

import pytest
import sqlalchemy as sa
from sqlalchemy import orm

from sqla_lightmodel import lightmodel_cache_clear

from .models import Base, Category, Comment, Post, User, events, settings


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--db",
        default="sqlite",
        choices=["sqlite", "postgres", "mysql", "mariadb"],
        help="Database backend to test against",
    )


@pytest.fixture(scope="session")
def db_backend(request: pytest.FixtureRequest) -> str:
    value: str = request.config.getoption("--db")

    return value


@pytest.fixture(scope="session")
def db_config(db_backend: str, tmp_path_factory: pytest.TempPathFactory) -> Iterator[str]:
    match db_backend:
        case "postgres":
            from testcontainers.postgres import PostgresContainer

            pg = PostgresContainer(image="postgres:latest")
            if os.name == "nt":
                pg.get_container_host_ip = lambda: "127.0.0.1"
            with pg:
                host = pg.get_container_host_ip()
                dsn = (
                    f"postgresql+psycopg://{pg.username}:{pg.password}"
                    f"@{host}:{pg.get_exposed_port(pg.port)}/{pg.dbname}"
                )
                yield dsn

        case "mysql" | "mariadb":
            from testcontainers.mysql import MySqlContainer

            image = "mysql:8.0" if db_backend == "mysql" else "mariadb:latest"
            my = MySqlContainer(image=image)
            if os.name == "nt":
                my.get_container_host_ip = lambda: "127.0.0.1"
            with my:
                host = my.get_container_host_ip()
                port = my.get_exposed_port(my.port)
                dsn = (
                    f"mysql+pymysql://{my.username}:{my.password}"
                    f"@{host}:{port}/{my.dbname}"
                )
                yield dsn

        case "sqlite":
            tmp = tmp_path_factory.mktemp("db")
            yield f"sqlite:///{tmp}/test.db"


@pytest.fixture(scope="session")
def engine(db_config: str) -> Iterator[sa.Engine]:
    engine = sa.create_engine(db_config, echo=False)
    yield engine
    engine.dispose()


@pytest.fixture(scope="session")
def _create_tables(engine: sa.Engine) -> Iterator[None]:
    with engine.begin() as conn:
        Base.metadata.create_all(conn)
    yield
    with engine.begin() as conn:
        Base.metadata.drop_all(conn)


@pytest.fixture
def connection(engine: sa.Engine, _create_tables: None) -> Iterator[sa.Connection]:
    with engine.connect() as conn:
        trans = conn.begin()
        yield conn
        trans.rollback()


@pytest.fixture
def session(connection: sa.Connection) -> Iterator[orm.Session]:
    sess = orm.Session(bind=connection, expire_on_commit=False)
    yield sess
    sess.close()


@pytest.fixture
def seed_data(session: orm.Session) -> dict[str, list[Base]]:
    alice = User(id=1, name="alice", active=True)
    bob = User(id=2, name="bob", active=True)
    charlie = User(id=3, name="charlie", active=False)
    session.add_all([alice, bob, charlie])
    session.flush()

    post1 = Post(
        id=1, code=7, title="Alice Post 1", active=1, author_id=1,
        name_en="Hello", name_uz="Salom", published_on="2024-01-01",
    )
    post2 = Post(
        id=2, code=8, title="Alice Post 2", active=1, author_id=1,
        name_en="World", name_uz="Dunyo", published_on="2024-02-01",
    )
    post3 = Post(
        id=3, code=9, title="Alice Post 3", active=0, author_id=1,
        name_en="Draft", name_uz="Qoralama", published_on=None,
    )
    post4 = Post(
        id=4, code=10, title="Bob Post 1", active=1, author_id=2,
        name_en="Bye", name_uz="Xayr", published_on="2024-03-01",
    )
    session.add_all([post1, post2, post3, post4])
    session.flush()

    comment1 = Comment(id=1, text="Great post!", post_id=1)
    comment2 = Comment(id=2, text="Nice work", post_id=1)
    comment3 = Comment(id=3, text="Thanks", post_id=2)
    session.add_all([comment1, comment2, comment3])
    session.flush()

    root = Category(id=1, name="root", parent_id=None)
    child1 = Category(id=2, name="child_1", parent_id=1)
    child2 = Category(id=3, name="child_2", parent_id=1)
    grandchild = Category(id=4, name="grandchild", parent_id=2)
    session.add_all([root])
    session.flush()
    session.add_all([child1, child2])
    session.flush()
    session.add_all([grandchild])
    session.flush()

    session.execute(
        settings.insert().values([
            {"key": "theme", "value": "dark"},
            {"key": "lang", "value": "en"},
        ])
    )
    session.execute(
        events.insert().values([
            {"id": None, "kind": "x"},
            {"id": 2, "kind": "y"},
        ])
    )
    session.flush()

    return {
        "users": [alice, bob, charlie],
        "posts": [post1, post2, post3, post4],
        "comments": [comment1, comment2, comment3],
        "categories": [root, child1, child2, grandchild],
    }


@pytest.fixture(autouse=True)
def clear_lru_caches() -> Iterator[None]:
    yield
    lightmodel_cache_clear()
