# tgbatch/core/operations.py
"""
Per-operation request options.

One table keyed by OperationKind replaces per-operation copies of the
same option declarations: which endpoint is called, which optional body
fields may be merged in from ``additional_fields``, and which reply
markup modes are accepted.
"""
from __future__ import annotations

from dataclasses import dataclass

from tgbatch.core.domain import OperationKind, ReplyMarkupMode
from tgbatch.core.errors import UnsupportedOperationError


@dataclass(frozen=True)
class OperationOptions:
    endpoint: str
    additional_fields: frozenset[str]
    reply_markup_modes: frozenset[ReplyMarkupMode]


_REPLY_MARKUP_MODES = frozenset({ReplyMarkupMode.NONE, ReplyMarkupMode.INLINE_KEYBOARD_JSON})

_OPERATIONS: dict[OperationKind, OperationOptions] = {
    OperationKind.SEND_MESSAGE: OperationOptions(
        endpoint="sendMessage",
        additional_fields=frozenset({
            "disable_notification",
            "disable_web_page_preview",
            "reply_to_message_id",
            "message_thread_id",
        }),
        reply_markup_modes=_REPLY_MARKUP_MODES,
    ),
    OperationKind.EDIT_MESSAGE_TEXT: OperationOptions(
        endpoint="editMessageText",
        # disable_notification is meaningless for edits and is never sent
        additional_fields=frozenset({
            "disable_web_page_preview",
            "reply_to_message_id",
        }),
        reply_markup_modes=_REPLY_MARKUP_MODES,
    ),
}


def get_operation_options(operation: OperationKind) -> OperationOptions:
    try:
        return _OPERATIONS[operation]
    except (KeyError, TypeError):
        raise UnsupportedOperationError(operation) from None
