"""
Demand-driven input creation.

The outer generator works bottom-up: it picks an operation and looks for inputs
in the sequence pool. When the pool has nothing of a required type, this module
works top-down instead: it looks for operations that create values of that type,
synthesizes and runs calls to them, and pools the ones that succeed so that the
type (and the intermediate types built along the way) can be reused.

Building a complex value may take several invocations: each call pools whatever
intermediate objects it managed to create, and later calls build on them.
"""

import logging
from typing import Dict, List, Optional

from ..entities import Sequence, TypeRef, is_successful
from ..execution.in_process import SequenceExecutor
from .pool import SequencePool
from .producers import ProducerSearch
from .synthesizer import SequenceSynthesizer


logger = logging.getLogger(__name__)


class DemandDrivenInputCreator:
    """Creates inputs of a missing type on demand and republishes them to the pool."""

    def __init__(self, pool: SequencePool, search: ProducerSearch,
                 synthesizer: SequenceSynthesizer, executor: SequenceExecutor):
        self.pool = pool
        self.search = search
        self.synthesizer = synthesizer
        self.executor = executor
        self.session = search.session

        self.stats: Dict[str, int] = {
            'requests': 0,
            'producers_found': 0,
            'sequences_synthesized': 0,
            'synthesis_failures': 0,
            'sequences_admitted': 0,
            'execution_failures': 0
        }

    def create_input_for_type(self, type_ref: TypeRef, exact_match: bool = False,
                              only_receivers: bool = False) -> List[Sequence]:
        """
        Try to create sequences producing type_ref, then return what the pool now holds.

        Args:
            type_ref: The type of values to create
            exact_match: Only return sequences producing exactly type_ref
            only_receivers: Only return sequences whose value can receive a method call

        Returns:
            Sequences for type_ref now available in the pool; may be empty, and may
            include sequences that were pooled before this call

        Raises:
            DiagnosticReportError: If the session's unspecified-type report cannot be written
        """
        self.stats['requests'] += 1
        producers = self.search.find_producers(type_ref)
        self.stats['producers_found'] += len(producers)
        logger.debug(f"Demand for {type_ref}: {len(producers)} candidate producers")

        for producer in producers:
            sequence = self.synthesizer.synthesize(producer, self.pool)
            if sequence is None:
                self.stats['synthesis_failures'] += 1
                continue
            self.stats['sequences_synthesized'] += 1
            self.execute_and_add_to_pool(sequence)

        result = self.pool.query(type_ref, exact_match, only_receivers)
        logger.info(f"Demand-driven creation for {type_ref}: {len(result)} sequences available")

        self.session.write_report()
        return result

    def execute_and_add_to_pool(self, sequence: Sequence) -> Optional[Sequence]:
        """
        Run sequence and pool it if its last statement produced a non-None value.

        Returns:
            The sequence if it was admitted, otherwise None
        """
        outcome = self.executor.run(sequence)
        if not is_successful(outcome):
            self.stats['execution_failures'] += 1
            logger.debug(f"Discarding sequence for {sequence.last_type}: {outcome}")
            return None
        if self.pool.add(sequence):
            self.stats['sequences_admitted'] += 1
        return sequence
