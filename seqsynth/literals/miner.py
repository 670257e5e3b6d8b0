"""
Literal mining: collect the constants a class uses in its source code.

Constants are gathered from the class body's AST. Negative numbers written as
unary minus applied to a literal are folded into a single constant. Docstrings,
booleans, None and Ellipsis are not literals of interest.
"""

import ast
import inspect
import logging
import textwrap
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Set

logger = logging.getLogger(__name__)

LITERAL_TYPES = (int, float, str, bytes)


@dataclass
class ConstantSet:
    """Literals observed in one class, with how often each is used."""
    classname: str
    ints: Set[int] = field(default_factory=set)
    floats: Set[float] = field(default_factory=set)
    strings: Set[str] = field(default_factory=set)
    bytes_values: Set[bytes] = field(default_factory=set)
    constant_to_frequency: Counter = field(default_factory=Counter)

    def add(self, value: Any):
        if isinstance(value, bool) or not isinstance(value, LITERAL_TYPES):
            return
        if isinstance(value, int):
            self.ints.add(value)
        elif isinstance(value, float):
            self.floats.add(value)
        elif isinstance(value, str):
            self.strings.add(value)
        else:
            self.bytes_values.add(value)
        # Keyed by (type, value) so that 1 and 1.0 stay distinct.
        self.constant_to_frequency[(type(value), value)] += 1

    def literals(self) -> List[Any]:
        return [value for (_, value) in self.constant_to_frequency]

    def frequency_of(self, value: Any) -> int:
        return self.constant_to_frequency.get((type(value), value), 0)

    def __str__(self) -> str:
        lines = [f"START CLASSLITERALS for {self.classname}"]
        lines += [f"int:{x}" for x in sorted(self.ints)]
        lines += [f"float:{x}" for x in sorted(self.floats)]
        lines += [f"str:{x!r}" for x in sorted(self.strings)]
        lines += [f"bytes:{x!r}" for x in sorted(self.bytes_values)]
        lines.append(f"END CLASSLITERALS for {self.classname}")
        return "\n".join(lines)


class _LiteralCollector(ast.NodeVisitor):
    def __init__(self, result: ConstantSet):
        self.result = result

    def visit_UnaryOp(self, node: ast.UnaryOp):
        operand = node.operand
        if (isinstance(node.op, (ast.USub, ast.UAdd)) and isinstance(operand, ast.Constant)
                and isinstance(operand.value, (int, float)) and not isinstance(operand.value, bool)):
            value = -operand.value if isinstance(node.op, ast.USub) else operand.value
            self.result.add(value)
            return
        self.generic_visit(node)

    def visit_Constant(self, node: ast.Constant):
        self.result.add(node.value)

    def visit_ClassDef(self, node: ast.ClassDef):
        self._visit_body_skipping_docstring(node)

    def visit_FunctionDef(self, node: ast.FunctionDef):
        self._visit_body_skipping_docstring(node)

    visit_AsyncFunctionDef = visit_FunctionDef

    def _visit_body_skipping_docstring(self, node):
        body = node.body
        if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant) \
                and isinstance(body[0].value.value, str):
            body = body[1:]
        for field_name, value in ast.iter_fields(node):
            if field_name == "body":
                continue
            if isinstance(value, list):
                for item in value:
                    if isinstance(item, ast.AST):
                        self.visit(item)
            elif isinstance(value, ast.AST):
                self.visit(value)
        for stmt in body:
            self.visit(stmt)


def get_constants(cls: type, result: Optional[ConstantSet] = None) -> ConstantSet:
    """
    Return the constants found in the source of cls.

    Args:
        cls: The class to mine
        result: Existing ConstantSet to add to, if any

    Returns:
        The ConstantSet, empty when the source is unavailable (builtins, C extensions)
    """
    if result is None:
        result = ConstantSet(classname=f"{cls.__module__}.{cls.__qualname__}")
    try:
        source = inspect.getsource(cls)
    except (OSError, TypeError) as e:
        logger.debug(f"No source available for {result.classname}: {e}")
        return result
    tree = ast.parse(textwrap.dedent(source))
    _LiteralCollector(result).visit(tree)
    return result


def mine_classes(classes: Iterable[type]) -> List[ConstantSet]:
    """Mine each class independently; one ConstantSet per class."""
    constant_sets = [get_constants(cls) for cls in classes]
    logger.info(f"Mined literals from {len(constant_sets)} classes")
    return constant_sets
