"""Shared validation helpers for service settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a string list from an environment variable or config value.

    Accepts a list of strings (returned as-is), a JSON array string such as
    '["a","b"]', or a comma-separated string such as 'a,b'.

    Raises ValueError for blank input or malformed JSON. Empty lists are
    rejected unless allow_empty is set.
    """
    if isinstance(value, list):
        items = value
    else:
        stripped = value.strip()
        if not stripped:
            raise ValueError("String list value must not be empty")
        if stripped.startswith("["):
            try:
                items = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON array: {e}") from e
            if not isinstance(items, list) or not all(isinstance(item, str) for item in items):
                raise ValueError("JSON value must be an array of strings")
        else:
            items = [part.strip() for part in stripped.split(",") if part.strip()]

    if not allow_empty and not items:
        raise ValueError("String list value must not be empty")
    return items


def parse_cors_origins(value: str | list[str]) -> list[str]:
    """Parse allowed CORS origins; a trailing slash on an origin is dropped."""
    return [origin.rstrip("/") for origin in parse_string_list(value)]


_STRING_LIST_FIELDS = {"cors_origins"}


class CorsEnvSettingsSource(EnvSettingsSource):
    """Env settings source that hands string-list fields to validators undecoded.

    pydantic-settings JSON-decodes list-typed fields from env vars before
    validators run, which breaks the comma-separated form. This source skips
    that step so parse_cors_origins sees the raw string.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in _STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
