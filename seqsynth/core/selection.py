"""
Selection strategies for choosing one input sequence among several candidates.

When the pool offers more than one sequence for a needed argument type, the
synthesizer delegates the choice to an InputSequenceSelector. Constant mining
selection biases the choice towards literals that are frequent in, but specific
to, a few classes under test (TF-IDF weighting).
"""

import logging
import math
import random
import threading
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, TYPE_CHECKING

from ..entities import Sequence

if TYPE_CHECKING:
    from ..literals.frequency import LiteralFrequencyTable


logger = logging.getLogger(__name__)


class InputSequenceSelector(ABC):
    """Abstract base class for input selection strategies."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    @abstractmethod
    def select(self, candidates: List[Sequence]) -> Sequence:
        """Select one sequence from a non-empty candidate list."""
        pass


class UniformRandomSelection(InputSequenceSelector):
    """Every candidate is equally likely."""

    def select(self, candidates: List[Sequence]) -> Sequence:
        if not candidates:
            raise ValueError("Cannot select from empty candidate list")
        return self.rng.choice(candidates)


def tf_idf(term_frequency: int, document_frequency: int, num_classes: int) -> float:
    """
    Weight of a literal: tf * ln((N + 1) / (N + 1 - df)).

    A literal found in every class plus one (df >= N + 1) carries no
    discriminating value and gets weight 0.
    """
    denominator = (num_classes + 1.0) - document_frequency
    if denominator <= 0:
        return 0.0
    return term_frequency * math.log((num_classes + 1.0) / denominator)


class ConstantMiningSelection(InputSequenceSelector):
    """
    Weighted selection using literals mined from the classes under test.

    Weights of literal sequences are fixed at construction. Any other candidate
    is given weight 1 the first time it is seen, and keeps it for the run.
    """

    DEFAULT_WEIGHT = 1.0

    def __init__(self, frequency_table: "LiteralFrequencyTable",
                 rng: Optional[random.Random] = None):
        super().__init__(rng)
        self.weights: Dict[Sequence, float] = {}
        self._lock = threading.Lock()

        logger.debug(f"Literal term frequencies: {frequency_table.term_frequencies}")
        logger.debug(f"Literal document frequencies: {frequency_table.document_frequencies}")

        for sequence, document_frequency in frequency_table.document_frequencies.items():
            term_frequency = frequency_table.term_frequencies.get(sequence, 0)
            self.weights[sequence] = tf_idf(
                term_frequency, document_frequency, frequency_table.num_classes
            )

    def weight_of(self, sequence: Sequence) -> float:
        """Weight of sequence, assigning the default on first encounter."""
        with self._lock:
            return self.weights.setdefault(sequence, self.DEFAULT_WEIGHT)

    def select(self, candidates: List[Sequence]) -> Sequence:
        if not candidates:
            raise ValueError("Cannot select from empty candidate list")

        scores = [self.weight_of(c) for c in candidates]
        if logger.isEnabledFor(logging.DEBUG):
            for candidate, score in zip(candidates, scores):
                logger.debug(f"weight of {candidate.last_type} sequence {candidate.to_code()!r} is {score}")

        # Handle case where all weights are 0
        total = sum(scores)
        if total <= 0:
            return self.rng.choice(candidates)

        r = self.rng.uniform(0, total)
        cumsum = 0.0
        for candidate, score in zip(candidates, scores):
            cumsum += score
            if score > 0 and r <= cumsum:
                return candidate
        # fallback for float rounding: last candidate with a positive weight
        return next(c for c, s in reversed(list(zip(candidates, scores))) if s > 0)


def create_selector(strategy_name: str = "uniform",
                    frequency_table: Optional["LiteralFrequencyTable"] = None,
                    rng: Optional[random.Random] = None) -> InputSequenceSelector:
    """
    Create an input selector by name.

    Args:
        strategy_name: One of "uniform", "constant_mining"
        frequency_table: Mined literal statistics, required for "constant_mining"
        rng: Random source shared with the rest of the run

    Returns:
        Configured InputSequenceSelector
    """
    if strategy_name == "uniform":
        return UniformRandomSelection(rng)
    if strategy_name == "constant_mining":
        if frequency_table is None:
            raise ValueError("constant_mining selection requires a literal frequency table")
        return ConstantMiningSelection(frequency_table, rng)
    raise ValueError(f"Unknown strategy: {strategy_name}. Available: ['uniform', 'constant_mining']")
