"""
Literal mining for constant-weighted input selection.
"""

from .miner import ConstantSet, get_constants, mine_classes
from .frequency import LiteralFrequencyTable

__all__ = [
    "ConstantSet",
    "get_constants",
    "mine_classes",
    "LiteralFrequencyTable"
]
