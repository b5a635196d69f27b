# tgbatch/core/params.py
"""
Mapping-backed parameter resolver.

Production hosts supply their own resolver; this one serves the CLI
runner and tests.  A parameter value is either a literal shared by every
item or a callable evaluated against the item, which is how per-item
values such as ``chat_id`` are usually pulled out of the record itself::

    resolver = MappingParameterResolver(
        {"operation": "sendMessage", "chat_id": lambda item: item.json["chat"]},
        items,
    )

String values of the form ``"={{field}}"`` are shorthand for reading
``item.json[field]``; this is what batch files loaded by the CLI use.
"""
from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from tgbatch.core.domain import InputItem
from tgbatch.core.errors import ValidationError

_FIELD_REF = re.compile(r"^=\{\{\s*([\w.]+)\s*\}\}$")
_MISSING = object()


class MappingParameterResolver:
    def __init__(self, parameters: Mapping[str, Any], items: Sequence[InputItem]):
        self._parameters = dict(parameters)
        self._items = items

    def get(self, name: str, index: int, default: Any = _MISSING) -> Any:
        value = self._parameters.get(name, _MISSING)
        if value is not _MISSING:
            value = self._evaluate(name, value, index)

        if value is _MISSING:
            if default is _MISSING:
                raise ValidationError(f"Parameter '{name}' is not set", item_index=index)
            return default
        return value

    def _evaluate(self, name: str, value: Any, index: int) -> Any:
        if callable(value):
            return value(self._item(name, index))
        if isinstance(value, str):
            match = _FIELD_REF.match(value)
            if match:
                return _lookup(self._item(name, index).json, match.group(1))
        return value

    def _item(self, name: str, index: int) -> InputItem:
        if not 0 <= index < len(self._items):
            raise ValidationError(
                f"Parameter '{name}' requested for item {index}, "
                f"but the batch only has {len(self._items)} items",
            )
        return self._items[index]


def _lookup(data: Mapping[str, Any], path: str) -> Any:
    """Dotted-path lookup; missing keys resolve to the sentinel."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current
