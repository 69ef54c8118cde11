"""
FastAPI dependencies for response rendering.

Route handlers receive the application's entity encoder through these
dependencies instead of importing a process-wide instance.
"""

from typing import Annotated

from fastapi import Depends, Request

from waiter.core.config import Settings
from waiter.serialization.encoder import EntityEncoder


def get_entity_encoder(request: Request) -> EntityEncoder:
    """
    Return the entity encoder built at application startup.

    Example:
        @router.get("/orders/{order_id}")
        async def get_order(order_id: int, encoder: EntityEncoderDep):
            order = await repository.get(order_id)
            return encoder.render(order)
    """
    return request.app.state.entity_encoder


def get_app_settings(request: Request) -> Settings:
    """Return the settings the application was created with."""
    return request.app.state.settings


EntityEncoderDep = Annotated[EntityEncoder, Depends(get_entity_encoder)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
