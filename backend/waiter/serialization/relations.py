"""
Deferred relation model.

A relation crossing the API boundary is either materialized, with its
payload already in memory, or unmaterialized, known only by the identifier
of the row it points to (when that can be read without a query). ORM
relationship attributes are classified into one of the two by reading the
instance state, never by touching the attribute itself.
"""

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar, Union

from sqlalchemy import inspect
from sqlalchemy.orm import InstanceState, RelationshipDirection, RelationshipProperty

T = TypeVar("T")


@dataclass(frozen=True)
class Materialized(Generic[T]):
    """A relation whose payload is loaded. A None value is a null reference."""

    value: T


@dataclass(frozen=True)
class Unmaterialized:
    """
    A relation whose payload has not been fetched.

    Attributes:
        placeholder_id: Identifier of the referenced row when it is known
            from the owner's foreign key columns, a tuple for composite
            keys, None for collections
    """

    placeholder_id: Any = None


Relation = Union[Materialized[Any], Unmaterialized]


def instance_state(obj: Any) -> Optional[InstanceState]:
    """Return the ORM state of a mapped instance, None for anything else."""
    if isinstance(obj, type):
        return None
    state = inspect(obj, raiseerr=False)
    return state if isinstance(state, InstanceState) else None


def is_mapped_instance(obj: Any) -> bool:
    return instance_state(obj) is not None


def identity_of(state: InstanceState) -> Any:
    """
    Primary key of a mapped instance, read without a refresh.

    Returns a scalar for single-column keys, a tuple for composite keys
    and None when the key is not available.
    """
    if state.identity is not None:
        identity = state.identity
    else:
        mapper = state.mapper
        identity = tuple(
            state.dict.get(mapper.get_property_by_column(column).key)
            for column in mapper.primary_key
        )
        if all(part is None for part in identity):
            return None
    return identity[0] if len(identity) == 1 else tuple(identity)


def _foreign_key_values(
    state: InstanceState, prop: RelationshipProperty
) -> Optional[tuple[Any, ...]]:
    # None when any local foreign key column is itself unloaded.
    values = []
    for local, _remote in prop.local_remote_pairs:
        column_key = state.mapper.get_property_by_column(local).key
        if column_key not in state.dict:
            return None
        values.append(state.dict[column_key])
    return tuple(values) or None


def inspect_relation(instance: Any, key: str) -> Relation:
    """
    Classify one relationship attribute of a mapped instance.

    Args:
        instance: Mapped instance owning the relationship
        key: Relationship attribute name

    Returns:
        Materialized with the loaded value, or Unmaterialized carrying the
        referenced identifier when it can be read from loaded foreign key
        columns

    Raises:
        ValueError: If instance is not mapped or key is not a relationship
    """
    state = instance_state(instance)
    if state is None:
        raise ValueError(f"{type(instance).__name__} is not a mapped instance")

    prop = state.mapper.relationships.get(key)
    if prop is None:
        raise ValueError(f"{state.class_.__name__}.{key} is not a relationship")

    return classify_relation(state, prop)


def classify_relation(state: InstanceState, prop: RelationshipProperty) -> Relation:
    """Classify a relationship of an already inspected instance."""
    key = prop.key

    if key in state.dict:
        return Materialized(state.dict[key])

    if prop.direction is RelationshipDirection.MANYTOONE and not prop.uselist:
        values = _foreign_key_values(state, prop)
        if values is not None:
            if any(value is None for value in values):
                # A null foreign key means the relation is null.
                return Materialized(None)
            return Unmaterialized(values[0] if len(values) == 1 else values)

    if not state.has_identity:
        # Transient and pending objects have nothing stored to fetch.
        return Materialized([] if prop.uselist else None)

    return Unmaterialized()
