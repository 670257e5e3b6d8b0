"""
Type universes: query interfaces over the types and operations of a program under test.

A TypeUniverse answers assignability questions and enumerates the accessible
constructors and methods of a type. Operations returned by constructors_of and
methods_of list only their declared parameters; the receiver of a non-static
method is added by the producer search when it builds a callable operation.
"""

import importlib
import inspect
import logging
import threading
import typing
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from ..entities import Operation, OperationKind, TypeRef


logger = logging.getLogger(__name__)


class TypeUniverse(ABC):
    """Abstract query interface over the type system of the program under test."""

    @abstractmethod
    def assignable_from(self, target: TypeRef, source: TypeRef) -> bool:
        """True if a value of type source can be used where target is required."""
        pass

    @abstractmethod
    def is_non_receiver_type(self, type_ref: TypeRef) -> bool:
        """True for primitive-like types that are never searched as a synthesis source."""
        pass

    @abstractmethod
    def constructors_of(self, type_ref: TypeRef) -> List[Operation]:
        pass

    @abstractmethod
    def methods_of(self, type_ref: TypeRef) -> List[Operation]:
        pass

    @abstractmethod
    def resolve(self, name: str) -> TypeRef:
        """
        Look up a type by its qualified name.

        Raises:
            LookupError: If no such type exists in this universe
        """
        pass

    def output_type(self, operation: Operation) -> TypeRef:
        return operation.output_type

    def input_types(self, operation: Operation) -> Tuple[TypeRef, ...]:
        return operation.input_types

    def is_static(self, operation: Operation) -> bool:
        return operation.is_static


class StaticTypeUniverse(TypeUniverse):
    """
    A universe whose types and operations are declared up front.

    Useful for modelled systems and tests; supports primitive types with boxed
    wrapper counterparts.
    """

    def __init__(self):
        self._types: Dict[str, TypeRef] = {}
        self._supertypes: Dict[str, Set[str]] = {}
        self._constructors: Dict[str, List[Operation]] = {}
        self._methods: Dict[str, List[Operation]] = {}

    def declare(self, name: str, primitive: bool = False, boxed_name: Optional[str] = None,
                supertypes: Iterable[Union[str, TypeRef]] = (),
                runtime_class: Optional[type] = None) -> TypeRef:
        """Declare a type, optionally with direct supertypes."""
        type_ref = TypeRef(name, runtime_class=runtime_class, primitive=primitive,
                           boxed_name=boxed_name)
        self._types[name] = type_ref
        self._supertypes[name] = {self._name(s) for s in supertypes}
        self._constructors.setdefault(name, [])
        self._methods.setdefault(name, [])
        return type_ref

    def add_constructor(self, owner: Union[str, TypeRef], params: Iterable[Union[str, TypeRef]] = (),
                        function: Optional[Callable[..., Any]] = None) -> Operation:
        owner_ref = self._lookup(owner)
        operation = Operation(
            name="__init__",
            kind=OperationKind.CONSTRUCTOR,
            declaring_type=owner_ref,
            input_types=tuple(self._lookup(p) for p in params),
            output_type=owner_ref,
            is_static=True,
            function=function if function is not None else owner_ref.runtime_class,
        )
        self._constructors[owner_ref.name].append(operation)
        return operation

    def add_method(self, owner: Union[str, TypeRef], name: str, returns: Union[str, TypeRef],
                   params: Iterable[Union[str, TypeRef]] = (), static: bool = False,
                   function: Optional[Callable[..., Any]] = None) -> Operation:
        owner_ref = self._lookup(owner)
        operation = Operation(
            name=name,
            kind=OperationKind.METHOD,
            declaring_type=owner_ref,
            input_types=tuple(self._lookup(p) for p in params),
            output_type=self._lookup(returns),
            is_static=static,
            function=function,
        )
        self._methods[owner_ref.name].append(operation)
        return operation

    def assignable_from(self, target: TypeRef, source: TypeRef) -> bool:
        if target == source:
            return True
        seen: Set[str] = set()
        frontier = [source.name]
        while frontier:
            current = frontier.pop()
            if current in seen:
                continue
            seen.add(current)
            parents = self._supertypes.get(current, set())
            if target.name in parents:
                return True
            frontier.extend(parents)
        return False

    def is_non_receiver_type(self, type_ref: TypeRef) -> bool:
        return self._lookup(type_ref).primitive

    def constructors_of(self, type_ref: TypeRef) -> List[Operation]:
        return list(self._constructors.get(type_ref.name, []))

    def methods_of(self, type_ref: TypeRef) -> List[Operation]:
        # Inherited methods are visible on subtypes.
        result: List[Operation] = []
        seen: Set[str] = set()
        frontier = [type_ref.name]
        while frontier:
            current = frontier.pop(0)
            if current in seen:
                continue
            seen.add(current)
            result.extend(self._methods.get(current, []))
            frontier.extend(sorted(self._supertypes.get(current, set())))
        return result

    def resolve(self, name: str) -> TypeRef:
        if name not in self._types:
            raise LookupError(f"Unknown type: {name}")
        return self._types[name]

    def type_for_class(self, cls: type) -> TypeRef:
        for type_ref in self._types.values():
            if type_ref.runtime_class is cls:
                return type_ref
        raise LookupError(f"No declared type for class {cls.__qualname__}")

    def _lookup(self, ref: Union[str, TypeRef]) -> TypeRef:
        name = self._name(ref)
        if name not in self._types:
            raise LookupError(f"Type {name} has not been declared")
        return self._types[name]

    @staticmethod
    def _name(ref: Union[str, TypeRef]) -> str:
        return ref.name if isinstance(ref, TypeRef) else ref


# Builtin scalars are treated like primitives: always satisfiable from literals.
NON_RECEIVER_CLASSES = (int, float, bool, str, bytes, complex, type(None))


class ReflectionTypeUniverse(TypeUniverse):
    """
    A universe backed by runtime introspection of Python classes.

    Only operations whose parameters and return value carry class annotations are
    visible; anything untyped cannot be matched against the pool.
    """

    def __init__(self, include_private: bool = False):
        self.include_private = include_private
        self._cache: Dict[type, TypeRef] = {}
        self._lock = threading.Lock()

    def type_for_class(self, cls: type) -> TypeRef:
        with self._lock:
            type_ref = self._cache.get(cls)
            if type_ref is None:
                type_ref = TypeRef(
                    name=_qualified_name(cls),
                    runtime_class=cls,
                    primitive=cls in NON_RECEIVER_CLASSES,
                )
                self._cache[cls] = type_ref
            return type_ref

    def assignable_from(self, target: TypeRef, source: TypeRef) -> bool:
        if target == source:
            return True
        if target.runtime_class is None or source.runtime_class is None:
            return False
        return issubclass(source.runtime_class, target.runtime_class)

    def is_non_receiver_type(self, type_ref: TypeRef) -> bool:
        return type_ref.primitive or type_ref.runtime_class in NON_RECEIVER_CLASSES

    def constructors_of(self, type_ref: TypeRef) -> List[Operation]:
        cls = type_ref.runtime_class
        if cls is None or inspect.isabstract(cls) or cls in NON_RECEIVER_CLASSES:
            return []
        init = cls.__init__
        if init is object.__init__:
            params: Optional[Tuple[TypeRef, ...]] = ()
        else:
            params = self._parameter_types(init, skip_first=True)
        if params is None:
            return []
        return [Operation(
            name="__init__",
            kind=OperationKind.CONSTRUCTOR,
            declaring_type=type_ref,
            input_types=params,
            output_type=type_ref,
            is_static=True,
            function=cls,
        )]

    def methods_of(self, type_ref: TypeRef) -> List[Operation]:
        cls = type_ref.runtime_class
        if cls is None:
            return []
        operations = []
        seen: Set[str] = set()
        for klass in cls.__mro__:
            if klass is object:
                continue
            for name, raw in vars(klass).items():
                if name in seen:
                    continue
                seen.add(name)
                if name.startswith("_") and not self.include_private:
                    continue
                operation = self._method_operation(cls, klass, name, raw)
                if operation is not None:
                    operations.append(operation)
        return operations

    def resolve(self, name: str) -> TypeRef:
        parts = name.split(".")
        for split in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:split])
            try:
                target: Any = importlib.import_module(module_name)
            except ImportError:
                continue
            except Exception as e:
                # The module exists but failed while importing.
                raise LookupError(f"Class not found: {name} ({module_name} failed to import: {e})") from e
            try:
                for attr in parts[split:]:
                    target = getattr(target, attr)
            except AttributeError:
                continue
            if isinstance(target, type):
                return self.type_for_class(target)
        builtin = getattr(importlib.import_module("builtins"), name, None)
        if isinstance(builtin, type):
            return self.type_for_class(builtin)
        raise LookupError(f"Class not found: {name}")

    def _method_operation(self, cls: type, klass: type, name: str, raw: Any) -> Optional[Operation]:
        if isinstance(raw, staticmethod):
            func, static, skip_first = raw.__func__, True, False
            function = getattr(cls, name)
        elif isinstance(raw, classmethod):
            func, static, skip_first = raw.__func__, True, True
            function = getattr(cls, name)
            # Rendered and called on the inspected class.
            klass = cls
        elif inspect.isfunction(raw):
            func, static, skip_first = raw, False, True
            function = raw
        else:
            return None

        output = self._return_type(func)
        params = self._parameter_types(func, skip_first=skip_first)
        if output is None or params is None:
            return None
        return Operation(
            name=name,
            kind=OperationKind.METHOD,
            declaring_type=self.type_for_class(klass),
            input_types=params,
            output_type=output,
            is_static=static,
            function=function,
        )

    def _hints(self, func: Callable[..., Any]) -> Optional[Dict[str, Any]]:
        try:
            return typing.get_type_hints(func)
        except (NameError, TypeError, AttributeError) as e:
            logger.debug(f"Cannot resolve annotations of {func!r}: {e}")
            return None

    def _return_type(self, func: Callable[..., Any]) -> Optional[TypeRef]:
        hints = self._hints(func)
        if not hints:
            return None
        annotation = hints.get("return")
        if not isinstance(annotation, type) or annotation is type(None):
            return None
        return self.type_for_class(annotation)

    def _parameter_types(self, func: Callable[..., Any], skip_first: bool) -> Optional[Tuple[TypeRef, ...]]:
        """Types of the required positional parameters, or None if any is unusable."""
        try:
            signature = inspect.signature(func)
        except (TypeError, ValueError):
            return None
        hints = self._hints(func)
        if hints is None:
            return None
        parameters = list(signature.parameters.values())
        if skip_first:
            parameters = parameters[1:]
        result = []
        for param in parameters:
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if param.default is not param.empty:
                continue
            if param.kind is param.KEYWORD_ONLY:
                return None
            annotation = hints.get(param.name)
            if not isinstance(annotation, type):
                return None
            result.append(self.type_for_class(annotation))
        return tuple(result)


def _qualified_name(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def create_type_universe(kind: str = "reflection", **kwargs) -> TypeUniverse:
    """
    Create a TypeUniverse by name.

    Args:
        kind: One of "reflection", "static"
        **kwargs: Arguments for the universe

    Returns:
        Configured TypeUniverse
    """
    universes = {
        "reflection": ReflectionTypeUniverse,
        "static": StaticTypeUniverse
    }

    if kind not in universes:
        raise ValueError(f"Unknown type universe: {kind}. Available: {list(universes.keys())}")

    return universes[kind](**kwargs)
