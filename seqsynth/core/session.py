"""
Per-run state shared by the demand-driven components.

A GenerationSession owns the set of user-specified types and the registry of
types that demand-driven synthesis reached without the user asking for them.
Several sessions can coexist in one process without sharing state.
"""

import logging
import sys
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from ..entities import TypeRef
from ..types.universe import TypeUniverse


logger = logging.getLogger(__name__)


class SynthesisError(Exception):
    """Base class for failures that abort a synthesis run."""
    pass


class ConfigurationError(SynthesisError):
    """Raised when the run is misconfigured, e.g. a specified type cannot be resolved."""
    pass


class DiagnosticReportError(SynthesisError):
    """Raised when the unspecified-type report cannot be written."""
    pass


REPORT_HEADER = "Unspecified types used in demand-driven input creation:"


def in_standard_library(type_ref: TypeRef) -> bool:
    """True if the type comes from the Python standard library (builtins included)."""
    cls = type_ref.runtime_class
    module = cls.__module__ if cls is not None else type_ref.name.rpartition(".")[0]
    if not module:
        # A declared type without a class or module is user code.
        return False
    root = module.split(".")[0]
    return root in sys.stdlib_module_names or root == "builtins"


class UnspecifiedTypeTracker:
    """Append-only registry of types used by synthesis but not specified by the user."""

    def __init__(self):
        # dicts keep first-seen order
        self._types: Dict[TypeRef, None] = {}
        self._non_builtin: Dict[TypeRef, None] = {}
        self._lock = threading.Lock()

    def add(self, type_ref: TypeRef):
        with self._lock:
            if type_ref in self._types:
                return
            self._types[type_ref] = None
            if not type_ref.primitive and not in_standard_library(type_ref):
                self._non_builtin[type_ref] = None

    def unspecified_types(self) -> List[TypeRef]:
        with self._lock:
            return list(self._types)

    def non_builtin_unspecified_types(self) -> List[TypeRef]:
        """Unspecified types that are neither primitive nor from the standard library."""
        with self._lock:
            return list(self._non_builtin)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._types

    def write_report(self, path: Union[str, Path]):
        """
        Write the unspecified types, one name per line.

        Raises:
            DiagnosticReportError: If the file cannot be written
        """
        lines = [REPORT_HEADER] + [t.name for t in self.unspecified_types()]
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write("\n".join(lines) + "\n")
        except OSError as e:
            raise DiagnosticReportError(f"Error writing unspecified-type report to {path}: {e}") from e


class GenerationSession:
    """
    State of one test-generation run.

    Args:
        universe: Type universe of the program under test
        specified_class_names: Qualified names of the classes the user asked to test
        report_path: Where to write the unspecified-type report, if anywhere

    Raises:
        ConfigurationError: If a specified class name cannot be resolved
    """

    def __init__(self, universe: TypeUniverse, specified_class_names: Iterable[str] = (),
                 report_path: Optional[Union[str, Path]] = None):
        self.universe = universe
        self.report_path = report_path
        self.tracker = UnspecifiedTypeTracker()
        self.specified_types: List[TypeRef] = []
        for name in dict.fromkeys(specified_class_names):
            try:
                self.specified_types.append(universe.resolve(name))
            except LookupError as e:
                raise ConfigurationError(f"Class not found: {name}") from e
        self._specified = set(self.specified_types)
        logger.debug(f"Session specified types: {[t.name for t in self.specified_types]}")

    def is_specified(self, type_ref: TypeRef) -> bool:
        return type_ref in self._specified

    def record_type(self, type_ref: TypeRef):
        """Record type_ref in the unspecified registry unless the user specified it."""
        if not self.is_specified(type_ref):
            self.tracker.add(type_ref)

    def write_report(self):
        if self.report_path is not None:
            self.tracker.write_report(self.report_path)
