"""HTTP response rendered through the entity encoder."""

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Optional

from starlette.background import BackgroundTask
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from waiter.serialization.encoder import EntityEncoder


class EntityJSONResponse(JSONResponse):
    """
    JSON response whose body is produced by an EntityEncoder.

    Route handlers return this directly so FastAPI passes ORM objects
    through untouched instead of running its generic encoder over them.
    """

    media_type = "application/json"

    def __init__(
        self,
        content: Any,
        encoder: "EntityEncoder",
        status_code: int = 200,
        headers: Optional[Mapping[str, str]] = None,
        background: Optional[BackgroundTask] = None,
    ) -> None:
        self.encoder = encoder
        super().__init__(
            content,
            status_code=status_code,
            headers=headers,
            background=background,
        )

    def render(self, content: Any) -> bytes:
        return self.encoder.encode(content).encode("utf-8")
