"""
Entity serialization package.

Exports the encoder that renders ORM object graphs to JSON, the deferred
relation variant it understands, and the time zone configuration applied
to every rendered timestamp.
"""

from waiter.serialization.encoder import EntityEncoder
from waiter.serialization.relations import (
    Materialized,
    Relation,
    Unmaterialized,
    inspect_relation,
    is_mapped_instance,
)
from waiter.serialization.responses import EntityJSONResponse
from waiter.serialization.temporal import (
    JSONRenderConfig,
    load_time_zone,
    normalize_datetime,
    render_datetime,
)

__all__ = [
    "EntityEncoder",
    "EntityJSONResponse",
    "JSONRenderConfig",
    "Materialized",
    "Relation",
    "Unmaterialized",
    "inspect_relation",
    "is_mapped_instance",
    "load_time_zone",
    "normalize_datetime",
    "render_datetime",
]
