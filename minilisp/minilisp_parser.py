"""
Single-pass recursive-descent parser turning MiniLisp source into a parse tree.

The tree references the source by offset (see StringRef / SymbolRef), so it
must be evaluated against the same string it was parsed from.
"""
from typing import Any, List

from minilisp.minilisp_datatypes import ListNode, StringRef, SymbolRef, UnexpectedEndOfInput

# Characters that end a bare symbol. A quote does not.
SYMBOL_TERMINATORS = (" ", "\t", "\r", "\n", "(", ")")


class Parser:
    """Parses one top-level expression; trailing input is left unread."""

    def __init__(self):
        self.source = ""
        self.pos = 0

    def parse(self, source: str) -> Any:
        self.source = source
        self.pos = 0
        return self._parse_expr()

    def _peek(self) -> str:
        if self.pos >= len(self.source):
            raise UnexpectedEndOfInput(position=self.pos)
        return self.source[self.pos]

    def _next(self) -> str:
        c = self._peek()
        self.pos += 1
        return c

    def _parse_expr(self) -> Any:
        while True:
            c = self._peek()
            match c:
                case '"':
                    self.pos += 1
                    return self._parse_string()
                case '(':
                    self.pos += 1
                    return self._parse_list(self.pos - 1)
                case ' ' | '\t' | '\r' | '\n':
                    self.pos += 1
                case _:
                    return self._parse_symbol()

    def _parse_string(self) -> StringRef:
        start = self.pos
        escaping = False
        while True:
            c = self._next()
            if escaping:
                escaping = False
            elif c == '\\':
                escaping = True
            elif c == '"':
                return StringRef(start, self.pos - start - 1)

    def _parse_list(self, open_pos: int) -> ListNode:
        items: List[Any] = []
        while True:
            c = self._peek()
            match c:
                case ')':
                    self.pos += 1
                    return ListNode(items, start=open_pos)
                # Only space and tab separate elements; anything else,
                # newlines included, starts a nested expression.
                case ' ' | '\t':
                    self.pos += 1
                case _:
                    items.append(self._parse_expr())

    def _parse_symbol(self) -> SymbolRef:
        start = self.pos
        src = self.source
        while self.pos < len(src):
            c = src[self.pos]
            if c == ' ':
                ref = SymbolRef(start, self.pos - start)
                self.pos += 1
                return ref
            if c in SYMBOL_TERMINATORS:
                return SymbolRef(start, self.pos - start)
            self.pos += 1
        return SymbolRef(start, self.pos - start)


def parse(source: str) -> Any:
    """Convenience wrapper returning the root node of ``source``."""
    return Parser().parse(source)
