from minilisp.minilisp_datatypes import (
    VARIADIC, MiniLispError, UnexpectedEndOfInput, EvaluationError,
    ListNode, StringRef, SymbolRef, ValueKind, kind_of,
    Operation, Function, VariadicFunction, OverloadSet, Registry,
)
from minilisp.minilisp_parser import Parser, parse
from minilisp.minilisp_interpreter import Evaluator
from minilisp.minilisp_runtime import Env, ExecutionResult, StdLib, api_method

__all__ = [
    "VARIADIC", "MiniLispError", "UnexpectedEndOfInput", "EvaluationError",
    "ListNode", "StringRef", "SymbolRef", "ValueKind", "kind_of",
    "Operation", "Function", "VariadicFunction", "OverloadSet", "Registry",
    "Parser", "parse", "Evaluator",
    "Env", "ExecutionResult", "StdLib", "api_method",
]
