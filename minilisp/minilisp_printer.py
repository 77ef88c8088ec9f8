"""
A pretty-printer for MiniLisp values and parse trees.
"""
from minilisp.minilisp_datatypes import ListNode, StringRef, SymbolRef


class Printer:
    """Formats values into readable MiniLisp source strings."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj):
        """Public entry point to format a value."""
        handler = self._handlers.get(type(obj))
        if handler is None:
            # Host objects and subclasses of the primitive types
            if isinstance(obj, bool):
                handler = self._pformat_bool
            elif isinstance(obj, int):
                handler = self._pformat_int
            elif isinstance(obj, str):
                handler = self._pformat_str
            else:
                return repr(obj)
        return handler(obj)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_int,
            bool: self._pformat_bool,
            type(None): self._pformat_none,
        }

    def _pformat_int(self, obj):
        return str(int(obj))

    def _pformat_str(self, obj):
        escaped = obj.replace('\\', '\\\\').replace('"', '\\"')
        return f'"{escaped}"'

    def _pformat_bool(self, obj):
        return 'true' if obj else 'false'

    def _pformat_none(self, obj):
        return 'null'

    def pformat_node(self, node, source: str) -> str:
        """Formats a parse tree back into source form, normalizing whitespace."""
        match node:
            case ListNode():
                return "(" + " ".join(self.pformat_node(n, source) for n in node) + ")"
            case StringRef():
                return f'"{node.raw(source)}"'
            case SymbolRef():
                return node.text(source)
        return repr(node)
