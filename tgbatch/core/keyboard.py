# tgbatch/core/keyboard.py
"""
Inline keyboard JSON codec.

An inline keyboard is a list of rows, each row a list of button objects
(``{"text": ..., "callback_data": ...}`` or ``{"text": ..., "url": ...}``).
Parsed rows are passed through untouched: the Bot API validates button
semantics, we only check the shape.
"""
from __future__ import annotations

import json
from typing import Any

from tgbatch.core.errors import ValidationError

InlineKeyboard = list[list[dict[str, Any]]]


def parse_inline_keyboard(raw: str | list) -> InlineKeyboard:
    """
    Parse and shape-check inline keyboard JSON.

    Accepts a JSON string or an already-decoded list.

    Raises:
        ValidationError: not valid JSON, or not a 2-D array of button objects.
    """
    if isinstance(raw, str):
        try:
            rows = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValidationError(f"Inline keyboard JSON is not valid JSON: {exc.msg} (line {exc.lineno})") from exc
    else:
        rows = raw

    if not isinstance(rows, list):
        raise ValidationError("Inline keyboard JSON must be an array of button rows")

    for row_idx, row in enumerate(rows):
        if not isinstance(row, list):
            raise ValidationError(f"Inline keyboard row {row_idx} must be an array of buttons")
        for btn_idx, button in enumerate(row):
            if not isinstance(button, dict):
                raise ValidationError(f"Inline keyboard button [{row_idx}][{btn_idx}] must be an object")
            if not isinstance(button.get("text"), str):
                raise ValidationError(f"Inline keyboard button [{row_idx}][{btn_idx}] needs a string 'text'")

    return rows


def build_reply_markup(raw: str | list) -> dict[str, Any]:
    """``reply_markup`` body value for an inline keyboard."""
    return {"inline_keyboard": parse_inline_keyboard(raw)}
