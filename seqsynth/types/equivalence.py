"""
Type equivalence checks used when matching pool sequences to operation inputs.
"""

from ..entities import TypeRef


def are_equivalent_considering_boxing(left: TypeRef, right: TypeRef) -> bool:
    """
    True if the types are equal, or one is a primitive and the other is its wrapper.

    Subtypes are not considered.
    """
    if left == right:
        return True
    if left.primitive and left.boxed_name is not None and left.boxed_name == right.name:
        return True
    if right.primitive and right.boxed_name is not None and right.boxed_name == left.name:
        return True
    return False
