"""
Type-directed search for operations that can produce a value of a missing type.

Starting from a seed type, the search walks outward through the parameter types
of every operation it accepts, so that producers of intermediate inputs are found
alongside producers of the target itself.
"""

import logging
from collections import deque
from dataclasses import replace
from enum import Enum
from typing import Deque, Dict, List, Optional, Set

from ..entities import Operation, TypeRef
from ..types.universe import TypeUniverse
from .session import GenerationSession


logger = logging.getLogger(__name__)


class ProducerOrder(Enum):
    """Order in which discovered producers are handed to the synthesizer."""
    REVERSED = "reversed"    # deepest-discovered first: basic inputs are built before their consumers
    DISCOVERY = "discovery"


class SearchPhase(Enum):
    SEEKING_TARGET = "seeking_target"
    SEEKING_INTERMEDIATE = "seeking_intermediate"


class ProducerSearch:
    """
    Finds constructors and methods that produce a target type.

    Seeds are the target itself followed by every user-specified type. Each seed
    runs an independent breadth-first search; results are concatenated and
    deduplicated.
    """

    def __init__(self, universe: TypeUniverse, session: GenerationSession,
                 order: ProducerOrder = ProducerOrder.REVERSED):
        self.universe = universe
        self.session = session
        self.order = order

    def find_producers(self, target: TypeRef) -> List[Operation]:
        producers: Dict[Operation, None] = {}
        seeds = [target] + [t for t in self.session.specified_types if t != target]
        for seed in seeds:
            for operation in self.search_from(target, seed):
                producers.setdefault(operation, None)
        logger.debug(f"Found {len(producers)} producer operations for {target}")
        return list(producers)

    def search_from(self, target: TypeRef, seed: TypeRef) -> List[Operation]:
        """
        Breadth-first search from seed for producers of target.

        On the first pop, methods must return something assignable to target.
        Afterwards each popped type only contributes methods returning that type.
        Constructors are accepted for any popped type assignable to target.
        """
        # Every type enters the work list at most once, so each is popped once.
        queued: Set[TypeRef] = {seed}
        work_list: Deque[TypeRef] = deque([seed])
        phase = SearchPhase.SEEKING_TARGET
        discovered: List[Operation] = []

        while work_list:
            current = work_list.popleft()
            self.session.record_type(current)

            if not self.universe.is_non_receiver_type(current):
                required = target if phase is SearchPhase.SEEKING_TARGET else current

                for operation in self._accepted_operations(current, target, required):
                    discovered.append(operation)
                    for input_type in self.universe.input_types(operation):
                        if input_type not in queued:
                            queued.add(input_type)
                            work_list.append(input_type)

            phase = SearchPhase.SEEKING_INTERMEDIATE

        if self.order is ProducerOrder.REVERSED:
            discovered.reverse()
        return discovered

    def _accepted_operations(self, current: TypeRef, target: TypeRef,
                             required: TypeRef) -> List[Operation]:
        accepted: List[Operation] = []
        if self.universe.assignable_from(target, current):
            accepted.extend(self.universe.constructors_of(current))

        for method in self.universe.methods_of(current):
            if not self.universe.assignable_from(required, self.universe.output_type(method)):
                continue
            accepted.append(self._bind_receiver(method, current))
        return accepted

    def _bind_receiver(self, method: Operation, receiver: TypeRef) -> Operation:
        """Make the receiver explicit as input 0 of a non-static method."""
        if self.universe.is_static(method):
            return method
        return replace(
            method,
            declaring_type=receiver,
            input_types=(receiver,) + tuple(self.universe.input_types(method)),
        )


def parse_producer_order(name: Optional[str]) -> ProducerOrder:
    if name is None:
        return ProducerOrder.REVERSED
    try:
        return ProducerOrder(name)
    except ValueError:
        raise ValueError(f"Unknown producer order: {name}. Available: {[o.value for o in ProducerOrder]}")
