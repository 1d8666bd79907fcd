"""
Result sink interface and fan-out.
"""

import logging
from typing import Iterable, List

from common.trial import TrialOutcome
from persistence.record import TrialResult

logger = logging.getLogger(__name__)


class ResultSink:
    """Append-only consumer of trial results."""

    def write(self, result: TrialResult) -> None:
        raise NotImplementedError

    def record_discarded(self, outcome: TrialOutcome) -> None:
        """Called for trials that did not receive every response. Ignored by default."""

    def close(self) -> None:
        """Flush anything buffered. Sinks stay usable until closed."""


class CompositeSink(ResultSink):
    """Forwards every result to several sinks in order."""

    def __init__(self, sinks: Iterable[ResultSink]):
        self.sinks: List[ResultSink] = list(sinks)

    def write(self, result: TrialResult) -> None:
        for sink in self.sinks:
            sink.write(result)

    def record_discarded(self, outcome: TrialOutcome) -> None:
        for sink in self.sinks:
            sink.record_discarded(outcome)

    def close(self) -> None:
        for sink in self.sinks:
            try:
                sink.close()
            except Exception as e:
                logger.error(f"Failed to close {type(sink).__name__}: {e}")


class MemorySink(ResultSink):
    """Keeps results in memory, used for summaries and tests."""

    def __init__(self):
        self.results: List[TrialResult] = []
        self.discarded: List[TrialOutcome] = []

    def write(self, result: TrialResult) -> None:
        self.results.append(result)

    def record_discarded(self, outcome: TrialOutcome) -> None:
        self.discarded.append(outcome)
