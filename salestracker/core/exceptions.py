from typing import Sequence


class SalesTrackerError(Exception):
    """Base class for errors raised by the persistence layer itself."""


class RecordNotFoundError(SalesTrackerError):
    """An update targeted an id that the backend does not hold."""

    def __init__(self, entity: str, record_id: str):
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"{entity} {record_id} not found")


class PartialWriteError(SalesTrackerError):
    """
    A multi-step write failed after at least one step had been applied.

    Attributes:
        completed_steps: steps that were written before the failure
        compensated: True when the completed steps were rolled back
    """

    def __init__(
        self,
        operation: str,
        completed_steps: Sequence[str],
        compensated: bool,
        cause: BaseException,
    ):
        self.operation = operation
        self.completed_steps = list(completed_steps)
        self.compensated = compensated
        self.cause = cause
        state = "rolled back" if compensated else "left in place"
        super().__init__(
            f"{operation} failed after {', '.join(self.completed_steps)} ({state}): {cause}"
        )
