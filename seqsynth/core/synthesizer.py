"""
Sequence synthesizer: turn one producer operation into a runnable call sequence.
"""

import logging
from typing import Dict, List, Optional

from ..entities import Operation, Sequence, TypeRef
from ..types.equivalence import are_equivalent_considering_boxing
from .pool import SequencePool
from .selection import InputSequenceSelector, UniformRandomSelection


logger = logging.getLogger(__name__)


class SequenceSynthesizer:
    """
    Builds a sequence ending in a call to a given operation from pooled sequences.

    Argument types are matched under boxing equivalence only; subtypes are not
    considered. Synthesis fails fast: if any argument type has no candidate, the
    attempt is abandoned.
    """

    def __init__(self, selector: Optional[InputSequenceSelector] = None):
        self.selector = selector or UniformRandomSelection()

    def synthesize(self, operation: Operation, pool: SequencePool) -> Optional[Sequence]:
        """
        Create a sequence that ends with a call to operation.

        Args:
            operation: The operation to call
            pool: Pool from which argument sequences are drawn

        Returns:
            The new sequence, or None if the pool cannot supply the arguments
        """
        input_types = list(operation.input_types)

        # Pass 1: choose one sub-sequence per input and record where each type is produced.
        input_sequences: List[Sequence] = []
        type_to_indices: Dict[TypeRef, List[int]] = {}
        index = 0
        for input_type in input_types:
            candidates = self.candidates_for(pool, input_type)
            if not candidates:
                logger.debug(f"No sequence for input {input_type} of {operation}")
                return None
            chosen = self.selector.select(candidates)
            input_sequences.append(chosen)
            for position in range(len(chosen)):
                type_to_indices.setdefault(chosen.type_of(position), []).append(index)
                index += 1

        # Pass 2: bind each input to a distinct compatible statement.
        input_indices: List[int] = []
        used_per_type: Dict[TypeRef, int] = {}
        for input_type in input_types:
            compatible = self.compatible_indices(type_to_indices, input_type)
            if not compatible:
                return None
            used = used_per_type.get(input_type, 0)
            if used >= len(compatible):
                logger.debug(f"Not enough values of {input_type} for {operation}")
                return None
            input_indices.append(compatible[used])
            used_per_type[input_type] = used + 1

        return Sequence.create(operation, input_sequences, input_indices)

    @staticmethod
    def candidates_for(pool: SequencePool, input_type: TypeRef) -> List[Sequence]:
        return [s for s in pool.all_sequences()
                if are_equivalent_considering_boxing(s.last_type, input_type)]

    @staticmethod
    def compatible_indices(type_to_indices: Dict[TypeRef, List[int]], input_type: TypeRef) -> List[int]:
        compatible: List[int] = []
        for produced, indices in type_to_indices.items():
            if are_equivalent_considering_boxing(produced, input_type):
                compatible.extend(indices)
        return sorted(compatible)
