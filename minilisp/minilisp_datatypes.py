"""
Defines the core data types for the MiniLisp evaluator.

This module provides the parse-tree nodes produced by the parser, the
error types raised while parsing and evaluating, and the operation,
overload-set and registry types the evaluator dispatches through.
"""

import collections.abc
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

# Arity marker for operations that accept any number of arguments.
VARIADIC = -1


# =================================================================
# Errors
# =================================================================

class MiniLispError(Exception):
    """Base class for all errors raised by the evaluator."""
    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        # Offset into the source string, when known.
        self.position = position


class UnexpectedEndOfInput(MiniLispError, EOFError):
    """Raised when the parser reads past the final character of the source."""
    def __init__(self, message: str = "Data ended unexpectedly.", position: Optional[int] = None):
        super().__init__(message, position)


class EvaluationError(MiniLispError):
    """Raised for every structural, lookup or dispatch fault during evaluation."""
    def __init__(self, message: str, position: Optional[int] = None, symbol: Optional[str] = None):
        super().__init__(message, position)
        self.symbol = symbol


# =================================================================
# Parse-tree nodes
# =================================================================

class SourceRef(ABC):
    """A span of the source string, stored as offsets rather than a copy.

    A span is only meaningful together with the source it was parsed from.
    """
    __slots__ = ("start", "length")

    def __init__(self, start: int, length: int):
        self.start = start
        self.length = length

    @property
    def end(self) -> int:
        return self.start + self.length

    def raw(self, source: str) -> str:
        return source[self.start:self.end]

    def __eq__(self, other):
        if type(other) is not type(self):
            return NotImplemented
        return self.start == other.start and self.length == other.length

    def __hash__(self):
        return hash((type(self).__name__, self.start, self.length))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self.start}, length={self.length})"


class StringRef(SourceRef):
    """A string literal; the span excludes the enclosing quotes."""
    __slots__ = ()

    def text(self, source: str) -> str:
        """Materializes the literal: each backslash passes the next character through verbatim."""
        raw = self.raw(source)
        if "\\" not in raw:
            return raw
        out = []
        escaping = False
        for ch in raw:
            if escaping:
                out.append(ch)
                escaping = False
            elif ch == "\\":
                escaping = True
            else:
                out.append(ch)
        return "".join(out)


class SymbolRef(SourceRef):
    """An unquoted, unparenthesized token."""
    __slots__ = ()

    def text(self, source: str) -> str:
        return self.raw(source)


class ListNode(collections.abc.Sequence):
    """A parenthesized form holding its child nodes in source order."""
    def __init__(self, children: List[Any], start: Optional[int] = None):
        self.children = list(children)
        # Offset of the opening parenthesis.
        self.start = start

    def __getitem__(self, index):
        return self.children[index]

    def __len__(self) -> int:
        return len(self.children)

    def __eq__(self, other):
        return isinstance(other, ListNode) and self.children == other.children

    def __repr__(self) -> str:
        return f"ListNode({self.children!r})"


# =================================================================
# Values
# =================================================================

class ValueKind(Enum):
    INTEGER = "int"
    BOOLEAN = "bool"
    NULL = "null"
    STRING = "string"
    OBJECT = "object"


def kind_of(value: Any) -> ValueKind:
    """Classifies a host value. Booleans are never integers here."""
    match value:
        case None:
            return ValueKind.NULL
        case bool():
            return ValueKind.BOOLEAN
        case int():
            return ValueKind.INTEGER
        case str():
            return ValueKind.STRING
        case _:
            return ValueKind.OBJECT


def type_matches(value: Any, expected: type) -> bool:
    """Runtime type test used by typed operations.

    Null matches nothing but ``type(None)``, a bool is not an int, and
    ``object`` accepts any non-null value.
    """
    if value is None:
        return expected is type(None)
    if expected is object:
        return True
    if isinstance(value, bool) and expected is int:
        return False
    return isinstance(value, expected)


# =================================================================
# Operations
# =================================================================

class Operation(ABC):
    """Abstract base class for everything that can be registered under a symbol."""

    @property
    @abstractmethod
    def arity(self) -> int:
        """Fixed argument count, or VARIADIC."""
        raise NotImplementedError

    @abstractmethod
    def try_invoke(self, args: List[Any]) -> Tuple[bool, Any]:
        """Returns ``(True, result)`` when the arguments type-check, else ``(False, None)``."""
        raise NotImplementedError

    @property
    def is_variadic(self) -> bool:
        return self.arity < 0


class Function(Operation):
    """A fixed-arity operation; one declared type per argument."""
    def __init__(self, func: Callable[..., Any], *arg_types: type):
        self.func = func
        self.arg_types = arg_types

    @property
    def arity(self) -> int:
        return len(self.arg_types)

    def try_invoke(self, args: List[Any]) -> Tuple[bool, Any]:
        if len(args) != len(self.arg_types):
            return False, None
        for arg, expected in zip(args, self.arg_types):
            if not type_matches(arg, expected):
                return False, None
        return True, self.func(*args)

    def __repr__(self) -> str:
        types = ", ".join(t.__name__ for t in self.arg_types)
        return f"<Function {getattr(self.func, '__name__', 'fn')}({types})>"


class VariadicFunction(Operation):
    """An operation accepting any number of arguments, passed as one list.

    With ``arg_type`` set, every argument must match it; otherwise the
    operation always invokes and does its own checking.
    """
    def __init__(self, func: Callable[[List[Any]], Any], arg_type: Optional[type] = None):
        self.func = func
        self.arg_type = arg_type

    @property
    def arity(self) -> int:
        return VARIADIC

    def try_invoke(self, args: List[Any]) -> Tuple[bool, Any]:
        if self.arg_type is not None:
            if not all(type_matches(a, self.arg_type) for a in args):
                return False, None
        return True, self.func(list(args))

    def __repr__(self) -> str:
        t = self.arg_type.__name__ if self.arg_type is not None else "any"
        return f"<VariadicFunction {getattr(self.func, '__name__', 'fn')}({t}...)>"


class OverloadSet:
    """The ordered operations registered under one symbol."""
    def __init__(self, name: str):
        self.name = name
        self.operations: List[Operation] = []

    def add_operation(self, op: Operation):
        self.operations.append(op)

    def __iter__(self) -> Iterator[Operation]:
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def __repr__(self) -> str:
        return f"<OverloadSet name={self.name!r} operations={len(self.operations)}>"


class Registry:
    """Maps symbol names to overload sets. Purely additive."""
    def __init__(self):
        self._overloads: Dict[str, OverloadSet] = {}

    def register(self, symbol: str, op: Operation):
        overloads = self._overloads.get(symbol)
        if overloads is None:
            overloads = self._overloads[symbol] = OverloadSet(symbol)
        overloads.add_operation(op)

    def lookup(self, symbol: str) -> Optional[OverloadSet]:
        return self._overloads.get(symbol)

    def symbols(self) -> List[str]:
        return list(self._overloads.keys())

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._overloads

    def __len__(self) -> int:
        return len(self._overloads)

    def __repr__(self) -> str:
        return f"<Registry symbols=[{', '.join(self._overloads)}]>"
