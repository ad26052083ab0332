import dataclasses
import itertools
from typing import Hashable, Optional

from ..config.config import LOG
from .errors import TimelineError
from .input_entities import ParsedBatch


@dataclasses.dataclass(frozen=True, order=True)
class LoadToken:
    """Ticket of one load attempt. Tokens of later attempts are greater."""

    sequence: int
    key: Hashable = dataclasses.field(compare=False, default=None)
    """What is loaded, like ("api", user_id, date) or file path. For logs only."""


class BatchLoader:
    """
    Holds the current `ParsedBatch`. Loads may finish in any order but only the most recently begun one may
    install its result, results and errors of superseded loads are discarded.
    """

    def __init__(self) -> None:
        self._sequence = itertools.count(1)
        self._latest: Optional[LoadToken] = None
        self.current: Optional[ParsedBatch] = None
        """Installed batch, `None` until the first successful load."""
        self.error: Optional[TimelineError] = None
        """Batch-fatal error of the latest load, `None` if it succeeded or is in progress."""

    def begin(self, key: Hashable = None) -> LoadToken:
        """Starts new load attempt superseding all previous ones."""
        self._latest = LoadToken(next(self._sequence), key)
        self.error = None
        LOG.debug("Began load %s.", self._latest)
        return self._latest

    def is_latest(self, token: LoadToken) -> bool:
        return self._latest is not None and token == self._latest

    def complete(self, token: LoadToken, batch: ParsedBatch) -> bool:
        """
        Installs the batch if the token belongs to the latest load.
        :return: `True` if installed, `False` if the load was superseded and the batch is discarded.
        """
        if not self.is_latest(token):
            LOG.info("Discarding result of superseded load %s, latest is %s.", token, self._latest)
            return False
        self.current = batch
        self.error = None
        return True

    def fail(self, token: LoadToken, error: TimelineError) -> bool:
        """
        Records batch-fatal error of the load. Keeps the previously installed batch.
        :return: `True` if recorded, `False` if the load was superseded and the error is ignored.
        """
        if not self.is_latest(token):
            LOG.info("Ignoring error of superseded load %s: %s", token, error)
            return False
        self.error = error
        return True
