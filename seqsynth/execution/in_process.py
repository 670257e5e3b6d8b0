"""
Execute call sequences in the current interpreter.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, List

from ..entities import (
    ExceptionalExecution,
    ExecutionOutcome,
    NormalExecution,
    NotExecuted,
    Sequence,
)


logger = logging.getLogger(__name__)


class SequenceExecutor(ABC):
    """Runs a sequence and reports the outcome of its last statement."""

    @abstractmethod
    def run(self, sequence: Sequence) -> ExecutionOutcome:
        pass

    def cleanup(self) -> None:
        """Release any resources held by the executor."""
        pass


class InProcessExecutor(SequenceExecutor):
    """
    Calls each statement's Python callable directly.

    Execution stops at the first statement that raises; the last statement is
    then reported as not executed. Arbitrary exceptions from the program under
    test are outcomes, not errors.
    """

    def run(self, sequence: Sequence) -> ExecutionOutcome:
        outcomes = self.run_all(sequence)
        return outcomes[-1] if outcomes else NotExecuted("empty sequence")

    def run_all(self, sequence: Sequence) -> List[ExecutionOutcome]:
        values: List[Any] = []
        outcomes: List[ExecutionOutcome] = []
        for position, stmt in enumerate(sequence.statements):
            try:
                value = stmt.operation.invoke([values[i] for i in stmt.inputs])
            except Exception as e:
                logger.debug(f"Statement {position} ({stmt.operation}) raised {type(e).__name__}: {e}")
                outcomes.append(ExceptionalExecution(e))
                remaining = len(sequence) - position - 1
                outcomes.extend(NotExecuted(f"statement {position} raised") for _ in range(remaining))
                return outcomes
            values.append(value)
            outcomes.append(NormalExecution(value))
        return outcomes
