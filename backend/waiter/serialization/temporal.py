"""
Temporal normalization for JSON rendering.

Every datetime that crosses the API boundary is converted to a single
configured time zone and rendered as ISO-8601 with millisecond precision
and a numeric offset. The same configuration object carries the document
layout (indented or compact) used by the encoder.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from waiter.core.config import ConfigurationError, Settings
from waiter.core.logging import get_logger

logger = get_logger(__name__)

INDENT_WIDTH = 2
PRETTY_SEPARATORS = (",", ": ")
COMPACT_SEPARATORS = (",", ":")


def load_time_zone(name: str) -> ZoneInfo:
    """
    Resolve an IANA time zone identifier.

    Args:
        name: Zone identifier such as "Asia/Taipei"

    Returns:
        Resolved zone

    Raises:
        ConfigurationError: If the identifier is unknown or malformed
    """
    try:
        return ZoneInfo(name.strip())
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        logger.error(
            "Invalid time zone configuration",
            time_zone=name,
            error=str(e),
            error_type=type(e).__name__,
        )
        raise ConfigurationError(f"Unknown time zone identifier: {name!r}") from e


@dataclass(frozen=True)
class JSONRenderConfig:
    """
    Immutable JSON rendering configuration.

    Attributes:
        time_zone: Zone every datetime is rendered in
        indent_output: Indent the rendered document
        expose_ids: Render entity primary keys and placeholder identifiers
    """

    time_zone: ZoneInfo
    indent_output: bool = True
    expose_ids: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "JSONRenderConfig":
        """
        Build the rendering configuration from application settings.

        Raises:
            ConfigurationError: If the configured time zone cannot be loaded
        """
        return cls(
            time_zone=load_time_zone(settings.json_time_zone),
            indent_output=settings.json_indent_output,
            expose_ids=settings.json_expose_ids,
        )

    @property
    def indent(self) -> Optional[int]:
        return INDENT_WIDTH if self.indent_output else None

    @property
    def separators(self) -> tuple[str, str]:
        return PRETTY_SEPARATORS if self.indent_output else COMPACT_SEPARATORS


def normalize_datetime(value: datetime, zone: ZoneInfo) -> datetime:
    """
    Convert a datetime to the given zone.

    Naive values are taken to be UTC instants.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(zone)


def render_datetime(value: datetime, zone: ZoneInfo) -> str:
    """Render a datetime in the given zone, e.g. 2024-01-01T08:00:00.000+08:00."""
    return normalize_datetime(value, zone).isoformat(timespec="milliseconds")
