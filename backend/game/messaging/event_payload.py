"""Centralized payload shaping for outgoing wire messages.

Every server message goes through ``message_payload`` so field aliasing and
value conversion are defined once: camelCase keys, enum values as plain
strings, datetimes as ISO-8601 strings. Server-only fields (connection ids,
raw inputs, orchestration phase) are excluded on the models themselves.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pydantic import BaseModel


def message_payload(message: BaseModel) -> dict[str, Any]:
    """Return the wire-format dict for a server message model."""
    return message.model_dump(mode="json", by_alias=True)
