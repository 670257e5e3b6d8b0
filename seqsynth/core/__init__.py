"""
Core components for seqsynth - demand-driven input creation for test generation.
"""

from .pool import SequencePool
from .selection import (
    InputSequenceSelector,
    UniformRandomSelection,
    ConstantMiningSelection,
    create_selector,
    tf_idf
)

from .session import (
    GenerationSession,
    UnspecifiedTypeTracker,
    SynthesisError,
    ConfigurationError,
    DiagnosticReportError
)

from .producers import ProducerSearch, ProducerOrder, parse_producer_order
from .synthesizer import SequenceSynthesizer
from .demand_driven import DemandDrivenInputCreator

from .runner import (
    SynthesisRunner,
    SynthesisConfig
)

__all__ = [
    "SequencePool",
    "InputSequenceSelector",
    "UniformRandomSelection",
    "ConstantMiningSelection",
    "create_selector",
    "tf_idf",
    "GenerationSession",
    "UnspecifiedTypeTracker",
    "SynthesisError",
    "ConfigurationError",
    "DiagnosticReportError",
    "ProducerSearch",
    "ProducerOrder",
    "parse_producer_order",
    "SequenceSynthesizer",
    "DemandDrivenInputCreator",
    "SynthesisRunner",
    "SynthesisConfig"
]
