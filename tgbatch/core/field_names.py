# tgbatch/core/field_names.py
"""Multipart field that carries the attached file, per operation."""
from __future__ import annotations

from tgbatch.core.domain import OperationKind
from tgbatch.core.errors import UnsupportedOperationError

# Operation name without the "send" prefix, lower-cased.
_ATTACHMENT_FIELDS: dict[OperationKind, str] = {
    OperationKind.SEND_MESSAGE: "message",
    OperationKind.EDIT_MESSAGE_TEXT: "editmessagetext",
}


def get_attachment_field_name(operation: OperationKind | str) -> str:
    """
    Return the multipart field name the Bot API expects the file under.

    Raises:
        UnsupportedOperationError: operation outside the supported set.
    """
    try:
        return _ATTACHMENT_FIELDS[OperationKind(operation)]
    except (KeyError, ValueError):
        raise UnsupportedOperationError(operation) from None
