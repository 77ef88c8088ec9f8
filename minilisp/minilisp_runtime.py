# minilisp_runtime.py

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from minilisp.minilisp_parser import Parser
from minilisp.minilisp_interpreter import Evaluator
from minilisp.minilisp_datatypes import (
    Registry, Operation, OverloadSet, Function, VariadicFunction,
    MiniLispError, UnexpectedEndOfInput, EvaluationError
)

# ===================================================================
# 1. Host binding
# ===================================================================


def api_method(*arg_types: type, variadic: bool = False, symbol: Optional[str] = None):
    """A decorator to mark host methods as MiniLisp operations.

    Fixed-arity methods declare one type per argument. Variadic methods
    declare at most one element type and receive their arguments as a list.
    """
    if variadic and len(arg_types) > 1:
        raise TypeError("A variadic api_method takes at most one argument type")

    def mark(func):
        func._minilisp_api = {
            'arg_types': arg_types,
            'variadic': variadic,
            'symbol': symbol,
        }
        return func
    return mark


def host_operations(host: Any) -> List[Tuple[str, Operation]]:
    """Collects ``(symbol, operation)`` pairs from a host's @api_method members.

    Members are visited in definition order, base classes first, so the
    order they are written in is the overload order.
    """
    names: Dict[str, None] = {}
    for cls in reversed(type(host).__mro__):
        for name in vars(cls):
            names.setdefault(name, None)

    ops: List[Tuple[str, Operation]] = []
    for name in names:
        # Resolved on the class so overrides in subclasses take effect.
        spec = getattr(getattr(type(host), name, None), '_minilisp_api', None)
        if spec is not None:
            bound = getattr(host, name)
            op_name = spec['symbol'] or name.lstrip('_').replace('_', '-')
            if spec['variadic']:
                arg_type = spec['arg_types'][0] if spec['arg_types'] else None
                ops.append((op_name, VariadicFunction(bound, arg_type)))
            else:
                ops.append((op_name, Function(bound, *spec['arg_types'])))
    return ops


# ===================================================================
# 2. Standard operations
# ===================================================================


def _same_value(a, b) -> bool:
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


class StdLib:
    """Arithmetic, comparison, equality and logic operations."""

    # arithmetic
    @api_method(int, variadic=True, symbol="add")
    def add_ints(self, args): return sum(args)

    # overload by type
    @api_method(str, variadic=True, symbol="add")
    def add_strings(self, args): return "".join(args)

    # inequalities
    @api_method(int, int)
    def lt(self, a, b): return a < b
    @api_method(int, int)
    def lte(self, a, b): return a <= b
    @api_method(int, int)
    def gt(self, a, b): return a > b
    @api_method(int, int)
    def gte(self, a, b): return a >= b

    # equality
    @api_method(object, object)
    def eq(self, a, b): return _same_value(a, b)
    @api_method(object, object)
    def ne(self, a, b): return not _same_value(a, b)

    # logic
    @api_method(bool, variadic=True, symbol="and")
    def all_true(self, args): return all(args)
    @api_method(bool, variadic=True, symbol="or")
    def any_true(self, args): return any(args)
    @api_method(bool, bool)
    def xor(self, a, b): return a != b
    @api_method(bool, symbol="not")
    def negate(self, a): return not a


# ===================================================================
# 3. Environment
# ===================================================================


@dataclass
class ExecutionResult:
    """The structured result of evaluating one source string."""
    status: Literal['success', 'error']
    value: Any = None
    error_message: Optional[str] = None
    error_location: Optional[Dict[str, int]] = None
    source: Optional[str] = None
    stacktrace: List[Dict] = field(default_factory=list)

    def format_error(self) -> str:
        """Formats an error message with line, column and source context when available."""
        if self.status != 'error':
            return ""
        msg = str(self.error_message or "Unknown error")
        loc = self.error_location
        if loc and 'line' in loc:
            line, col = loc['line'], loc.get('col')
            col_info = f", col {col}" if col is not None else ""
            msg = f"Error on line {line}{col_info}: {msg}"
            if self.source:
                context = source_context(self.source, line, col)
                if context:
                    msg += "\n" + context
        trace = format_stacktrace(self.stacktrace)
        if trace:
            msg += "\n" + trace
        return msg


def line_col(source: str, position: int) -> Dict[str, int]:
    """Converts a source offset to a 1-based line and column."""
    position = max(0, min(position, len(source)))
    # Same line breaks as str.splitlines, which source_context uses.
    pieces = source[:position].splitlines(keepends=True) or [""]
    last = pieces[-1]
    if last and last.splitlines()[0] != last:
        return {'line': len(pieces) + 1, 'col': 1}
    return {'line': len(pieces), 'col': len(last) + 1}


def source_context(source: str, line: int, col: Optional[int], radius: int = 2) -> str:
    lines = source.splitlines() or [""]
    if line > len(lines) and source.endswith(("\n", "\r")):
        lines.append("")
    if not line or line < 1 or line > len(lines):
        return ""
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    width = len(str(end))
    out = []
    for i in range(start, end + 1):
        prefix = ">" if i == line else " "
        out.append(f"{prefix} {str(i).rjust(width)} | {lines[i - 1]}")
        if i == line and col is not None:
            caret = " " * max(col - 1, 0)
            out.append(f"  {' ' * width} | {caret}^")
    return "\n".join(out)


def format_stacktrace(frames: List[Dict]) -> str:
    if not frames:
        return ""
    from minilisp.minilisp_printer import Printer
    pf = Printer().pformat
    parts = []
    for frame in frames:
        args_s = " ".join(pf(a) for a in frame.get('args') or [])
        parts.append(f"({frame.get('name')}{' ' + args_s if args_s else ''})")
    return "MiniLisp stacktrace: " + " ".join(parts)


class Env:
    """Holds the registered operations and evaluates source strings against them."""

    def __init__(self, operations: Optional[Iterable[Tuple[str, Operation]]] = None, *,
                 load_stdlib: bool = False, host_object: Any = None):
        self.registry = Registry()
        self.parser = Parser()
        self.evaluator = Evaluator(self.registry)
        self.host_object = host_object

        if load_stdlib:
            self.bind_host(StdLib())
        if host_object is not None:
            self.bind_host(host_object)
        for symbol, op in operations or ():
            self.register(symbol, op)

    def register(self, symbol: str, op: Operation):
        """Appends ``op`` to the overload set of ``symbol``."""
        self.registry.register(symbol, op)

    def lookup(self, symbol: str) -> Optional[OverloadSet]:
        return self.registry.lookup(symbol)

    def bind_host(self, host: Any) -> List[str]:
        """Registers every @api_method of ``host``; returns the symbols bound."""
        names = []
        for symbol, op in host_operations(host):
            self.register(symbol, op)
            names.append(symbol)
        return names

    def evaluate(self, source: str) -> Any:
        """Parses and evaluates one top-level expression."""
        self.evaluator.call_stack.clear()
        root = self.parser.parse(source)
        return self.evaluator.eval(root, source)

    def run(self, source: str) -> ExecutionResult:
        """Like evaluate, but reports failures as an ExecutionResult instead of raising."""
        try:
            value = self.evaluate(source)
        except Exception as e:
            msg, loc = self._format_error(e, source)
            return ExecutionResult(
                status='error',
                error_message=msg,
                error_location=loc,
                source=source,
                stacktrace=[dict(f) for f in self.evaluator.call_stack],
            )
        return ExecutionResult(status='success', value=value, source=source)

    def _format_error(self, e: Exception, source: str) -> Tuple[str, Optional[Dict[str, int]]]:
        match e:
            case UnexpectedEndOfInput():
                msg = f"ParseError: {e.message}"
            case EvaluationError():
                msg = f"EvaluationError: {e.message}"
            case _:
                msg = f"InternalError: {type(e).__name__}: {e}"
        position = e.position if isinstance(e, MiniLispError) else None
        if position is None:
            frames = self.evaluator.call_stack
            if frames and frames[-1].get('position') is not None:
                position = frames[-1]['position']
        loc = line_col(source, position) if position is not None else None
        return msg, loc
