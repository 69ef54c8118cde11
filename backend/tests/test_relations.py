"""
Test suite for deferred relation classification.

Relations are classified from the ORM instance state: loaded attributes
become Materialized, unloaded ones Unmaterialized with the referenced key
when the owner's foreign key is loaded. Classification never queries.
"""

import pytest
from sqlalchemy import select
from sqlalchemy.orm import joinedload, selectinload

from coffee_models import Barista, Coffee, CoffeeOrder
from waiter.serialization.relations import (
    Materialized,
    Unmaterialized,
    identity_of,
    inspect_relation,
    instance_state,
    is_mapped_instance,
)


async def _load_order(session, order_id, *options):
    result = await session.execute(
        select(CoffeeOrder).options(*options).where(CoffeeOrder.id == order_id)
    )
    return result.scalar_one()


class TestInspectRelation:
    """Test suite for classifying relationships of persistent instances."""

    @pytest.mark.asyncio
    async def test_unloaded_many_to_one_carries_foreign_key(
        self, session_factory, seeded, statement_log
    ):
        async with session_factory() as session:
            order = await _load_order(session, seeded["order_id"])
            issued = len(statement_log)

            relation = inspect_relation(order, "barista")

            assert relation == Unmaterialized(seeded["barista_id"])
            assert len(statement_log) == issued

    @pytest.mark.asyncio
    async def test_unloaded_collection_has_no_identifier(
        self, session_factory, seeded, statement_log
    ):
        async with session_factory() as session:
            order = await _load_order(session, seeded["order_id"])
            issued = len(statement_log)

            relation = inspect_relation(order, "items")

            assert relation == Unmaterialized()
            assert relation.placeholder_id is None
            assert len(statement_log) == issued

    @pytest.mark.asyncio
    async def test_loaded_relations_are_materialized(self, session_factory, seeded):
        async with session_factory() as session:
            order = await _load_order(
                session,
                seeded["order_id"],
                joinedload(CoffeeOrder.barista),
                selectinload(CoffeeOrder.items),
            )

            barista = inspect_relation(order, "barista")
            items = inspect_relation(order, "items")

            assert isinstance(barista, Materialized)
            assert barista.value is order.barista
            assert isinstance(items, Materialized)
            assert {coffee.name for coffee in items.value} == {"latte", "espresso"}

    @pytest.mark.asyncio
    async def test_null_foreign_key_is_materialized_none(
        self, session_factory, seeded, statement_log
    ):
        """A relation known to be null is not reported as unloaded."""
        async with session_factory() as session:
            walk_in = await _load_order(session, seeded["walk_in_id"])
            issued = len(statement_log)

            relation = inspect_relation(walk_in, "barista")

            assert relation == Materialized(None)
            assert len(statement_log) == issued

    @pytest.mark.asyncio
    async def test_expired_instance_is_unmaterialized(
        self, session_factory, seeded, statement_log
    ):
        """Expired foreign keys are not refreshed to build a placeholder."""
        async with session_factory() as session:
            order = await _load_order(
                session, seeded["order_id"], joinedload(CoffeeOrder.barista)
            )
            session.expire(order)
            issued = len(statement_log)

            relation = inspect_relation(order, "barista")

            assert relation == Unmaterialized()
            assert len(statement_log) == issued


class TestTransientInstances:
    """Test suite for instances that were never stored."""

    def test_unset_scalar_relation_is_null(self):
        order = CoffeeOrder(customer="walk-in")

        assert inspect_relation(order, "barista") == Materialized(None)

    def test_unset_collection_is_empty(self):
        order = CoffeeOrder(customer="walk-in")

        assert inspect_relation(order, "items") == Materialized([])

    def test_assigned_foreign_key_is_unmaterialized(self):
        """A stored barista referenced only by key is not reported as null."""
        order = CoffeeOrder(customer="walk-in", barista_id=5)

        assert inspect_relation(order, "barista") == Unmaterialized(5)

    def test_null_foreign_key_is_null(self):
        order = CoffeeOrder(customer="walk-in", barista_id=None)

        assert inspect_relation(order, "barista") == Materialized(None)

    def test_assigned_relation_is_materialized(self):
        barista = Barista(name="Ada")
        order = CoffeeOrder(customer="walk-in", barista=barista)

        relation = inspect_relation(order, "barista")

        assert relation.value is barista


class TestInspectionErrors:
    """Test suite for invalid inspection requests."""

    def test_non_mapped_object_rejected(self):
        with pytest.raises(ValueError, match="not a mapped instance"):
            inspect_relation({"barista": None}, "barista")

    def test_column_attribute_rejected(self):
        with pytest.raises(ValueError, match="not a relationship"):
            inspect_relation(CoffeeOrder(customer="walk-in"), "customer")


class TestInstanceHelpers:
    """Test suite for instance state helpers."""

    def test_is_mapped_instance(self):
        assert is_mapped_instance(Coffee(name="mocha")) is True
        assert is_mapped_instance(Coffee) is False
        assert is_mapped_instance({"name": "mocha"}) is False
        assert is_mapped_instance(None) is False

    def test_identity_of_transient_instance_uses_assigned_key(self):
        assert identity_of(instance_state(Coffee(id=7, name="mocha"))) == 7

    def test_identity_of_transient_instance_without_key(self):
        assert identity_of(instance_state(Coffee(name="mocha"))) is None

    @pytest.mark.asyncio
    async def test_identity_of_persistent_instance(self, session_factory, seeded):
        async with session_factory() as session:
            order = await _load_order(session, seeded["order_id"])

            assert identity_of(instance_state(order)) == seeded["order_id"]
