"""Typed domain exceptions for game rule violations.

Phase handlers raise subclasses of GameRuleError rather than returning
error flags. The service boundary converts content errors into events for
the sender; authorization and out-of-phase errors are swallowed by the
session layer so misbehaving clients learn nothing about room internals.
"""


class GameRuleError(Exception):
    """Base exception for game rule violations."""


class InvalidActionError(GameRuleError):
    """Action is not valid for the sender or the room's current phase.

    Never surfaced to clients.
    """

    def __init__(self, *, action: str, reason: str, player: str | None = None) -> None:
        self.action = action
        self.reason = reason
        self.player = player
        super().__init__(f"invalid {action} from {player or 'unknown'}: {reason}")


class LieRejectedError(GameRuleError):
    """Submitted lie failed content validation. The player may resubmit."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class QuestionBankError(Exception):
    """Question bank source is missing, unreadable or malformed."""
