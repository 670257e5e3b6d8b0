"""
Sequence pool for storing call sequences that are known to execute successfully.

The pool is the shared resource between the demand-driven engine and the outer
test generator: sequences are indexed by the type of the value they produce, and
can be queried by exact type or by any compatible subtype.
"""

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Set

from ..entities import Sequence, TypeRef
from ..types.universe import TypeUniverse


logger = logging.getLogger(__name__)


class SequencePool:
    """
    Append-mostly collection of sequences indexed by produced type.

    Appends are atomic and reads work on snapshots, so a reader running
    concurrently with an append may miss the new sequence but never sees a torn
    index.
    """

    def __init__(self, universe: TypeUniverse, initial: Optional[Iterable[Sequence]] = None):
        self.universe = universe
        self._by_type: Dict[TypeRef, List[Sequence]] = {}
        self._members: Set[Sequence] = set()
        self._lock = threading.Lock()
        for sequence in initial or ():
            self.add(sequence)

    def add(self, sequence: Sequence) -> bool:
        """
        Add a sequence to the pool.

        Returns:
            True if the sequence was new, False if it was already present
        """
        with self._lock:
            if sequence in self._members:
                return False
            self._members.add(sequence)
            self._by_type.setdefault(sequence.last_type, []).append(sequence)
        logger.debug(f"Pooled sequence producing {sequence.last_type}")
        return True

    def add_all(self, sequences: Iterable[Sequence]) -> int:
        return sum(1 for sequence in sequences if self.add(sequence))

    def contains(self, sequence: Sequence) -> bool:
        with self._lock:
            return sequence in self._members

    def __contains__(self, sequence: Sequence) -> bool:
        return self.contains(sequence)

    def __len__(self) -> int:
        with self._lock:
            return len(self._members)

    def all_sequences(self) -> List[Sequence]:
        """Snapshot of every sequence, in insertion order per type."""
        with self._lock:
            return [s for sequences in self._by_type.values() for s in sequences]

    def query(self, type_ref: TypeRef, exact_match: bool = False,
              only_receivers: bool = False) -> List[Sequence]:
        """
        Get sequences whose last value can be used as type_ref.

        Args:
            type_ref: The requested type
            exact_match: Only sequences producing exactly type_ref
            only_receivers: Only sequences whose value can receive a method call

        Returns:
            Matching sequences (possibly empty)
        """
        with self._lock:
            index = {t: list(seqs) for t, seqs in self._by_type.items()}

        result: List[Sequence] = []
        for produced, sequences in index.items():
            if exact_match:
                if produced != type_ref:
                    continue
            elif not self.universe.assignable_from(type_ref, produced):
                continue
            if only_receivers and self.universe.is_non_receiver_type(produced):
                continue
            result.extend(sequences)
        return result

    def get_statistics(self) -> Dict[str, Any]:
        """Get pool statistics."""
        with self._lock:
            if not self._members:
                return {"count": 0, "types": 0}
            lengths = [len(s) for s in self._members]
            return {
                "count": len(self._members),
                "types": len(self._by_type),
                "avg_length": sum(lengths) / len(lengths),
                "max_length": max(lengths)
            }
