"""
Type system access for seqsynth.

The engine never introspects the program under test directly; it goes through a
TypeUniverse so that reflection and declared (static) models are interchangeable.
"""

from .equivalence import are_equivalent_considering_boxing
from .universe import (
    TypeUniverse,
    StaticTypeUniverse,
    ReflectionTypeUniverse,
    create_type_universe
)

__all__ = [
    "are_equivalent_considering_boxing",
    "TypeUniverse",
    "StaticTypeUniverse",
    "ReflectionTypeUniverse",
    "create_type_universe"
]
