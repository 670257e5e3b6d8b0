"""
Entity definitions for the seqsynth input-synthesis engine.

This module contains the core data structures shared by every component:
types, operations, statements, call sequences, and execution outcomes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, List, Optional, Sequence as SequenceLike, Tuple, Union


@dataclass(frozen=True)
class TypeRef:
    """A node in the type system of the program under test."""
    name: str
    runtime_class: Optional[type] = field(default=None, compare=False, repr=False)
    primitive: bool = field(default=False, compare=False)
    boxed_name: Optional[str] = field(default=None, compare=False) # Wrapper type, if any

    def __str__(self) -> str:
        return self.name


class OperationKind(Enum):
    CONSTRUCTOR = "constructor"
    METHOD = "method"
    LITERAL = "literal"


@dataclass(frozen=True)
class Operation:
    """A constructor, method or literal with typed inputs and one output."""
    name: str
    kind: OperationKind
    declaring_type: TypeRef
    input_types: Tuple[TypeRef, ...]
    output_type: TypeRef
    is_static: bool = False
    value: Any = None # Only meaningful for literals
    function: Optional[Callable[..., Any]] = field(default=None, compare=False, repr=False)

    @classmethod
    def literal(cls, value: Any, type_ref: TypeRef) -> "Operation":
        return cls(
            name=repr(value),
            kind=OperationKind.LITERAL,
            declaring_type=type_ref,
            input_types=(),
            output_type=type_ref,
            is_static=True,
            value=value,
        )

    def invoke(self, args: List[Any]) -> Any:
        """Call the underlying Python callable with already-computed arguments."""
        if self.kind is OperationKind.LITERAL:
            return self.value
        if self.function is None:
            raise TypeError(f"Operation {self.name} has no callable attached")
        return self.function(*args)

    def __str__(self) -> str:
        params = ", ".join(t.name for t in self.input_types)
        return f"{self.declaring_type.name}.{self.name}({params}) -> {self.output_type.name}"


@dataclass(frozen=True)
class Statement:
    """One operation call whose arguments are earlier values of the same sequence."""
    operation: Operation
    inputs: Tuple[int, ...] = ()

    @property
    def output_type(self) -> TypeRef:
        return self.operation.output_type


@dataclass(frozen=True)
class Sequence:
    """
    An immutable chain of statements that builds a value.

    The value produced by the last statement is the sequence's artifact.
    """
    statements: Tuple[Statement, ...]

    def __len__(self) -> int:
        return len(self.statements)

    def type_of(self, index: int) -> TypeRef:
        return self.statements[index].output_type

    @property
    def last_type(self) -> TypeRef:
        if not self.statements:
            raise ValueError("Empty sequence has no last value")
        return self.statements[-1].output_type

    @classmethod
    def for_literal(cls, value: Any, type_ref: TypeRef) -> "Sequence":
        return cls((Statement(Operation.literal(value, type_ref)),))

    @classmethod
    def create(cls, operation: Operation, input_sequences: SequenceLike["Sequence"],
               input_indices: SequenceLike[int]) -> "Sequence":
        """
        Concatenate input sequences and append a call to operation.

        Args:
            operation: Operation invoked by the new final statement
            input_sequences: Sequences whose statements are copied, in order
            input_indices: Absolute indices (in the concatenation) used as arguments

        Returns:
            A new Sequence; none of the inputs are modified
        """
        statements: List[Statement] = []
        for sub in input_sequences:
            offset = len(statements)
            for stmt in sub.statements:
                shifted = tuple(i + offset for i in stmt.inputs)
                statements.append(Statement(stmt.operation, shifted))
        for index in input_indices:
            if index < 0 or index >= len(statements):
                raise IndexError(f"Input index {index} out of range for {len(statements)} statements")
        statements.append(Statement(operation, tuple(input_indices)))
        return cls(tuple(statements))

    def to_code(self) -> str:
        """Render the sequence as Python source, one assignment per statement."""
        lines = []
        for i, stmt in enumerate(self.statements):
            op = stmt.operation
            args = [f"v{j}" for j in stmt.inputs]
            if op.kind is OperationKind.LITERAL:
                expr = repr(op.value)
            elif op.kind is OperationKind.CONSTRUCTOR:
                expr = f"{_class_expr(op.declaring_type)}({', '.join(args)})"
            elif op.is_static:
                expr = f"{_class_expr(op.declaring_type)}.{op.name}({', '.join(args)})"
            else:
                expr = f"{args[0]}.{op.name}({', '.join(args[1:])})"
            lines.append(f"v{i} = {expr}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_code()


def _class_expr(type_ref: TypeRef) -> str:
    cls = type_ref.runtime_class
    if cls is not None and cls.__module__ != "builtins":
        return f"importlib.import_module({cls.__module__!r}).{cls.__qualname__}"
    if cls is not None:
        return cls.__qualname__
    return type_ref.name


@dataclass(frozen=True)
class NormalExecution:
    """The statement completed and produced value."""
    value: Any


@dataclass(frozen=True)
class ExceptionalExecution:
    """The statement raised."""
    exception: BaseException


@dataclass(frozen=True)
class NotExecuted:
    """The statement was never reached."""
    reason: str = ""


ExecutionOutcome = Union[NormalExecution, ExceptionalExecution, NotExecuted]


def is_successful(outcome: ExecutionOutcome) -> bool:
    """A sequence is admitted only if it completed normally with a non-None value."""
    return isinstance(outcome, NormalExecution) and outcome.value is not None
