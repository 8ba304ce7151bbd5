"""Wire payload shaping shared by every outbound path.

Both gameplay events and session replies end up as a plain dict with a
`type` key and camelCase field names, ready for the encoder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from trivia.logic.events import ServiceEvent
    from trivia.logic.types import WireModel


def wire_payload(message: WireModel) -> dict[str, Any]:
    return message.model_dump(mode="json", by_alias=True)


def service_event_payload(event: ServiceEvent) -> dict[str, Any]:
    """Return the wire dict for a ServiceEvent; the routing target is never sent."""
    return wire_payload(event.data)
