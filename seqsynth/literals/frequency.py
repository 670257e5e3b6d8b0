"""
Aggregated literal statistics across all classes under test.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from ..entities import Sequence
from ..types.universe import TypeUniverse
from .miner import ConstantSet


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiteralFrequencyTable:
    """
    Term and document frequencies of literal sequences.

    term_frequencies: total number of uses of the literal across all classes
    document_frequencies: number of distinct classes that use the literal
    num_classes: number of classes under test
    """
    term_frequencies: Dict[Sequence, int] = field(default_factory=dict)
    document_frequencies: Dict[Sequence, int] = field(default_factory=dict)
    num_classes: int = 0

    @classmethod
    def from_constant_sets(cls, constant_sets: Iterable[ConstantSet],
                           universe: TypeUniverse) -> "LiteralFrequencyTable":
        term_frequencies: Dict[Sequence, int] = {}
        document_frequencies: Dict[Sequence, int] = {}
        constant_sets = list(constant_sets)

        for constant_set in constant_sets:
            for (value_type, value), count in constant_set.constant_to_frequency.items():
                try:
                    type_ref = universe.resolve(value_type.__name__)
                except LookupError:
                    logger.debug(f"Skipping literal {value!r}: no type {value_type.__name__} in universe")
                    continue
                sequence = Sequence.for_literal(value, type_ref)
                term_frequencies[sequence] = term_frequencies.get(sequence, 0) + count
                document_frequencies[sequence] = document_frequencies.get(sequence, 0) + 1

        return cls(
            term_frequencies=term_frequencies,
            document_frequencies=document_frequencies,
            num_classes=len(constant_sets),
        )

    def literal_sequences(self) -> List[Sequence]:
        return list(self.document_frequencies)
