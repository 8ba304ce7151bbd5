"""
Pydantic models shared by gameplay events and session messages.

Attributes are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every model serialized to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PlayerInfo(WireModel):
    """Public player entry used in lobby lists, scoreboards and reveals."""

    name: str
    score: int
    connected: bool


class AnswerOption(WireModel):
    """One selectable answer slot. `id` is the only vote currency."""

    id: int
    text: str


class RevealEntry(WireModel):
    """Full disclosure of one answer slot after voting closes."""

    id: int
    text: str
    is_true: bool
    author: str | None
    picked_by: list[str]
