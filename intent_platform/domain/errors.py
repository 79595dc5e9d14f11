#===================================================================
# INTENT ERROR TAXONOMY
#
# Unauthorized        : caller lacks the creation capability
# SequenceMismatch    : stale fill sequence, caller must re-read
# NoOutstandingFill   : reclaim without a recorded fill
# TransferFailed      : asset transfer / approval / target call failed
#
# Every error aborts its operation atomically. Only the factory batch
# loop catches IntentError, per entry.
#===================================================================

from typing import Optional


class IntentError(Exception):
    """Base class for every intent state machine failure."""

    code = "INTENT_ERROR"

    def __init__(self, message: str, *, intent: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.intent = intent

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "intent": self.intent,
        }


class Unauthorized(IntentError):
    code = "UNAUTHORIZED"


class AlreadyInitialized(IntentError):
    code = "ALREADY_INITIALIZED"


class SequenceMismatch(IntentError):
    code = "SEQUENCE_MISMATCH"

    def __init__(self, expected: int, actual: int, *, intent: Optional[str] = None):
        super().__init__(
            f"Sequence mismatch: submitted {expected}, current {actual}",
            intent=intent,
        )
        self.expected = expected
        self.actual = actual

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["expected"] = self.expected
        data["actual"] = self.actual
        return data


class NoOutstandingFill(IntentError):
    code = "NO_OUTSTANDING_FILL"


class TransferFailed(IntentError):
    code = "TRANSFER_FAILED"


class InvalidIntentParams(IntentError, ValueError):
    code = "INVALID_PARAMS"


class InvalidBatch(IntentError, ValueError):
    code = "INVALID_BATCH"


class IntentNotFound(IntentError):
    code = "INTENT_NOT_FOUND"


class IntentAlreadyExists(IntentError):
    code = "INTENT_ALREADY_EXISTS"


class NotInitialized(IntentError):
    code = "NOT_INITIALIZED"
