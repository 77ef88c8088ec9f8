from __future__ import annotations

import json
from typing import Any
import collections.abc

import yaml


def _to_builtin(obj: Any) -> Any:
    # Host objects are rendered as text; containers are walked.
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, (list, tuple)):
        return [_to_builtin(x) for x in obj]
    if isinstance(obj, collections.abc.Mapping):
        return {str(k): _to_builtin(v) for k, v in obj.items()}
    return str(obj)


def serialize(value: Any, *, fmt: str, pretty: bool = True) -> str:
    """
    Convert an evaluation result into a textual representation.
    - fmt: 'json' | 'yaml'
    """
    f = (fmt or '').lower()
    built = _to_builtin(value)
    if f == 'json':
        return json.dumps(built, ensure_ascii=False, indent=2 if pretty else None)
    if f == 'yaml':
        text = yaml.safe_dump(built, sort_keys=False)
        # Scalars come back with an explicit end-of-document marker.
        if text.endswith("\n...\n"):
            text = text[:-4]
        return text
    raise ValueError(f"Unsupported serialization format: {fmt!r}")


__all__ = [
    "serialize",
]
