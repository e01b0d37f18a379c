"""Error values returned by commands and the history manager."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    PRECONDITION_FAILED = "PreconditionFailed"
    NOTHING_TO_UNDO = "NothingToUndo"
    NOTHING_TO_REDO = "NothingToRedo"
    OPERATION_FAILED = "OperationFailed"


@dataclass(frozen=True)
class CommandError:
    """Why a command could not run. Returned inside a CommandResult, never raised."""
    kind: ErrorKind
    message: str = ""
    cause: Optional[BaseException] = None  # set for OPERATION_FAILED

    def __str__(self):
        if self.cause is not None:
            return f"{self.kind.value}: {self.message} ({self.cause})"
        return f"{self.kind.value}: {self.message}"


class HistoryFormatError(ValueError):
    """A persisted history log could not be turned back into commands."""
