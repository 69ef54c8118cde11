"""
Entity serialization adapter.

Converts object graphs produced by the persistence layer into JSON without
ever loading data as a side effect. Loaded relationships are expanded with
the same rules as their owner, unloaded ones are rendered as a placeholder
object, and every datetime is rendered in the configured time zone.
"""

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from sqlalchemy.orm import InstanceState

from waiter.core.logging import get_logger
from waiter.serialization.relations import (
    Materialized,
    Unmaterialized,
    classify_relation,
    identity_of,
    instance_state,
)
from waiter.serialization.responses import EntityJSONResponse
from waiter.serialization.temporal import JSONRenderConfig, render_datetime

logger = get_logger(__name__)

PLACEHOLDER_LOADED_KEY = "loaded"
IDENTIFIER_KEY = "id"


class EntityEncoder:
    """
    JSON encoder for ORM object graphs with deferred relations.

    The encoder holds only its rendering configuration. Each call walks
    the graph independently, so one instance can serve concurrent requests.

    Example:
        encoder = EntityEncoder(JSONRenderConfig(time_zone=ZoneInfo("Asia/Taipei")))
        body = encoder.encode(order)
    """

    def __init__(self, config: JSONRenderConfig):
        self.config = config

    def encode(self, obj: Any) -> str:
        """
        Encode an object graph to a JSON document.

        Args:
            obj: Root of the object graph

        Returns:
            JSON text, indented when the configuration asks for it
        """
        return json.dumps(
            self.to_jsonable(obj),
            ensure_ascii=False,
            allow_nan=False,
            indent=self.config.indent,
            separators=self.config.separators,
        )

    def to_jsonable(self, obj: Any) -> Any:
        """Convert an object graph to JSON-compatible Python values."""
        return self._walk(obj, ())

    def render(
        self,
        content: Any,
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> EntityJSONResponse:
        """Build an HTTP response whose body is rendered by this encoder."""
        return EntityJSONResponse(
            content,
            encoder=self,
            status_code=status_code,
            headers=headers,
        )

    def placeholder(self, relation: Unmaterialized) -> dict[str, Any]:
        """Representation of a relation that has not been loaded."""
        result: dict[str, Any] = {PLACEHOLDER_LOADED_KEY: False}
        if self.config.expose_ids:
            result[IDENTIFIER_KEY] = self._walk(relation.placeholder_id, ())
        return result

    def _walk(self, obj: Any, path: tuple[int, ...]) -> Any:
        if isinstance(obj, Enum):
            obj = obj.value

        if obj is None or isinstance(obj, (str, bool, int, float)):
            return obj

        if isinstance(obj, Materialized):
            return self._walk(obj.value, path)

        if isinstance(obj, Unmaterialized):
            return self.placeholder(obj)

        if isinstance(obj, datetime):
            return render_datetime(obj, self.config.time_zone)

        if isinstance(obj, (date, time)):
            return obj.isoformat()

        state = instance_state(obj)
        if state is not None:
            return self._walk_entity(obj, state, path)

        if isinstance(obj, BaseModel):
            return self._walk(obj.model_dump(), path)

        if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
            return {
                field.name: self._walk(getattr(obj, field.name), path)
                for field in dataclasses.fields(obj)
            }

        if isinstance(obj, Mapping):
            return {str(key): self._walk(value, path) for key, value in obj.items()}

        if isinstance(obj, (list, tuple, set, frozenset)):
            return [self._walk(item, path) for item in obj]

        return jsonable_encoder(obj)

    def _walk_entity(
        self, obj: Any, state: InstanceState, path: tuple[int, ...]
    ) -> dict[str, Any]:
        if id(obj) in path:
            # Back-reference to an entity already being expanded.
            if not self.config.expose_ids:
                return {}
            return {IDENTIFIER_KEY: self._walk(identity_of(state), ())}

        path = path + (id(obj),)
        mapper = state.mapper
        primary_keys = {
            mapper.get_property_by_column(column).key for column in mapper.primary_key
        }
        result: dict[str, Any] = {}

        for prop in mapper.column_attrs:
            if prop.key not in state.dict:
                # Deferred or expired columns are not refreshed.
                continue
            if not self.config.expose_ids and prop.key in primary_keys:
                continue
            result[prop.key] = self._walk(state.dict[prop.key], path)

        for prop in mapper.relationships:
            relation = classify_relation(state, prop)
            if isinstance(relation, Unmaterialized):
                logger.debug(
                    "Deferred relation rendered as placeholder",
                    model=mapper.class_.__name__,
                    relation=prop.key,
                )
            result[prop.key] = self._walk(relation, path)

        return result
