from typing import Optional


class TimelineError(Exception):
    """Base class for all errors raised by the activity timeline engine."""


class SchemaError(TimelineError):
    """
    Input can't be interpreted as a batch of activities at all: mandatory columns are missing or the text is not
    a table. Batch-fatal.
    """


class EmptyResultError(TimelineError):
    """Every row of the input was skipped or date range can't be determined. Batch-fatal."""


class RowSkipped(TimelineError):
    """
    One raw row is defective and is excluded from the batch. Never leaves the normalizer.
    :param reason: Short reason to count skipped rows by.
    :param row_number: 1-based number of the row in the input.
    """

    def __init__(self, reason: str, row_number: int, details: str = "") -> None:
        super().__init__(f"Row {row_number} skipped: {reason}{': ' + details if details else ''}")
        self.reason = reason
        self.row_number = row_number


class AllocationDegenerateCase(TimelineError):
    """
    Proportional allocation is impossible because raw durations sum to zero while merged time is positive.
    :param unattributed_minutes: Merged minutes which can't be spread over labels.
    """

    def __init__(self, unattributed_minutes: float) -> None:
        super().__init__(
            f"Raw durations sum to 0 while {unattributed_minutes:.2f} merged minutes exist, can't allocate them."
        )
        self.unattributed_minutes = unattributed_minutes


class FetchError(TimelineError):
    """
    Remote source failed to provide data.
    :param status: HTTP status code or `None` if request didn't reach the server.
    :param message: Message from the server if any, otherwise description of the failure.
    """

    def __init__(self, status: Optional[int], message: str) -> None:
        super().__init__(f"{message} (status {status})" if status is not None else message)
        self.status = status
        self.message = message
