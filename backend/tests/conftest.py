"""
Pytest configuration and shared test fixtures.

This module provides the rendering configuration and encoder used across
the suite, plus an in-memory async SQLite database seeded with a small
coffee order graph. A statement log attached to the engine counts every
query so tests can assert that rendering never reaches the database.
"""

from datetime import datetime
from typing import AsyncGenerator
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from coffee_models import Barista, Base, Coffee, CoffeeOrder, OrderState
from waiter.core.config import Settings
from waiter.serialization.encoder import EntityEncoder
from waiter.serialization.temporal import JSONRenderConfig

TAIPEI = ZoneInfo("Asia/Taipei")


@pytest.fixture
def render_config() -> JSONRenderConfig:
    """Rendering configuration pinned to Asia/Taipei with indented output."""
    return JSONRenderConfig(time_zone=TAIPEI)


@pytest.fixture
def encoder(render_config: JSONRenderConfig) -> EntityEncoder:
    return EntityEncoder(render_config)


@pytest.fixture
def test_settings() -> Settings:
    """
    Settings for application tests, independent of the environment.

    Returns:
        Settings: Test settings with JSON rendering in Asia/Taipei
    """
    return Settings(
        _env_file=None,
        environment="test",
        log_level="DEBUG",
        json_time_zone="Asia/Taipei",
    )


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an in-memory database with the coffee schema.

    Yields:
        AsyncEngine: Engine bound to a single shared SQLite connection
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def statement_log(engine: AsyncEngine) -> list[str]:
    """
    Record every SQL statement sent to the database.

    Returns:
        list[str]: Statements in execution order, appended as they run
    """
    statements: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield statements
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def seeded(session_factory: async_sessionmaker) -> dict[str, int]:
    """
    Store one barista, two coffees, an order served by the barista and a
    walk-in order with no barista. Timestamps are naive UTC.

    Returns:
        dict[str, int]: Primary keys of the stored rows
    """
    async with session_factory() as session:
        barista = Barista(name="Ada", hired_at=datetime(2023, 12, 31, 16, 0))
        latte = Coffee(name="latte", price_cents=125, create_time=datetime(2024, 1, 1, 0, 0))
        espresso = Coffee(
            name="espresso", price_cents=100, create_time=datetime(2024, 1, 1, 0, 30)
        )
        order = CoffeeOrder(
            customer="Li Lei",
            state=OrderState.INIT,
            create_time=datetime(2024, 1, 2, 3, 4, 5),
            barista=barista,
            items=[latte, espresso],
        )
        walk_in = CoffeeOrder(
            customer="Han Meimei",
            state=OrderState.PAID,
            create_time=datetime(2024, 1, 2, 18, 0),
            items=[espresso],
        )
        session.add_all([order, walk_in])
        await session.commit()

        return {
            "order_id": order.id,
            "walk_in_id": walk_in.id,
            "barista_id": barista.id,
            "latte_id": latte.id,
            "espresso_id": espresso.id,
        }
