"""Validation helpers for environment-driven settings."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def _require_items(items: list[str], *, allow_empty: bool) -> list[str]:
    if not allow_empty and not items:
        raise ValueError("String list value must not be empty")
    return items


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a list of strings given as a list, a JSON array or comma-separated text.

    Raises ValueError for blank text, malformed JSON, non-string items and
    (unless allow_empty) an empty result.
    """
    if isinstance(value, list):
        return _require_items(value, allow_empty=allow_empty)

    text = value.strip()
    if not text:
        raise ValueError("String list value must not be empty")

    if not text.startswith("["):
        return _require_items([item.strip() for item in text.split(",") if item.strip()], allow_empty=allow_empty)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return _require_items(parsed, allow_empty=allow_empty)


STRING_LIST_FIELDS = frozenset({"cors_origins"})


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env source that leaves string-list fields as raw text for parse_string_list.

    pydantic-settings would otherwise insist on JSON for list-typed fields,
    rejecting the comma-separated form before any validator runs.
    """

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in STRING_LIST_FIELDS and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
