"""
The core MiniLisp interpreter: walks a parse tree and dispatches calls.
"""
import os
import re
import sys
from typing import Any, List

from minilisp.minilisp_datatypes import (
    ListNode, StringRef, SymbolRef, Registry, OverloadSet,
    EvaluationError, kind_of
)

# A digit-led atom must be entirely ASCII digits.
_INTEGER_RE = re.compile(r"[0-9]+")


class Evaluator:
    """The MiniLisp execution engine."""
    def __init__(self, registry: Registry):
        self.registry = registry
        self.call_stack: List[dict] = []

    def _push_frame(self, name, node):
        self.call_stack.append({
            'name': name,
            'args': [],
            'position': getattr(node, 'start', None),
        })

    def _pop_frame(self):
        if self.call_stack:
            self.call_stack.pop()

    def _dbg(self, *parts):
        if os.environ.get("MINILISP_DEBUG"):
            print("[DBG]", *parts, file=sys.stderr)

    def eval(self, node: Any, source: str) -> Any:
        """Public entry point: evaluates ``node`` against the source it was parsed from."""
        self.call_stack.clear()
        return self._eval(node, source)

    def _eval(self, node: Any, source: str) -> Any:
        match node:
            case ListNode():
                return self._eval_list(node, source)
            case StringRef():
                return node.text(source)
            case SymbolRef():
                return self._eval_atom(node, source)
        raise EvaluationError(f"Cannot evaluate node {node!r}")

    def _eval_atom(self, ref: SymbolRef, source: str) -> Any:
        if ref.length == 0:
            raise EvaluationError("Cannot evaluate a zero length symbol", position=ref.start)
        text = ref.text(source)
        lowered = text.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if lowered == "null":
            return None
        if "0" <= text[0] <= "9":
            if not _INTEGER_RE.fullmatch(text):
                raise EvaluationError(f"Invalid integer literal '{text}'", position=ref.start, symbol=text)
            return int(text)
        raise EvaluationError(f"Unexpected symbol '{text}'", position=ref.start, symbol=text)

    def _eval_list(self, node: ListNode, source: str) -> Any:
        if len(node) == 0:
            raise EvaluationError("Cannot evaluate an empty list", position=node.start)
        head = node[0]
        if not isinstance(head, SymbolRef):
            raise EvaluationError("First item in list must be a symbol", position=node.start)
        name = head.text(source)
        overloads = self.registry.lookup(name)
        if overloads is None:
            raise EvaluationError(f"Unknown function '{name}'", position=head.start, symbol=name)

        self._push_frame(name, node)
        args = []
        for child in node[1:]:
            args.append(self._eval(child, source))
        self.call_stack[-1]['args'] = args

        result = self.call(overloads, args, position=head.start)
        self._pop_frame()
        return result

    def call(self, overloads: OverloadSet, args: List[Any], position=None) -> Any:
        """Invokes the first operation whose arity and argument types accept ``args``."""
        argc = len(args)
        self._dbg("call", overloads.name, "argc", argc, "operations", len(overloads))
        for op in overloads:
            if op.arity >= 0 and op.arity != argc:
                continue
            ok, result = op.try_invoke(args)
            if ok:
                self._dbg("invoked", repr(op))
                return result
        kinds = ", ".join(kind_of(a).value for a in args)
        raise EvaluationError(
            f"Failed to invoke function '{overloads.name}' with arguments ({kinds})",
            position=position,
            symbol=overloads.name,
        )
