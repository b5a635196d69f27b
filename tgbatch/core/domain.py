# tgbatch/core/domain.py
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Dict, Optional, Union

from tgbatch.core.errors import UnsupportedOperationError


# ============================================================================
# ENUMS
# ============================================================================

class OperationKind(str, Enum):
    """Batch-wide action selector. Values are the Bot API method names."""
    SEND_MESSAGE = "sendMessage"
    EDIT_MESSAGE_TEXT = "editMessageText"

    @classmethod
    def parse(cls, value: Union[str, "OperationKind"]) -> "OperationKind":
        """Coerce a raw parameter value, rejecting anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedOperationError(value) from None


class MessageType(str, Enum):
    """Which identifier targets the message being edited."""
    MESSAGE = "message"
    INLINE_MESSAGE = "inlineMessage"


class ReplyMarkupMode(str, Enum):
    NONE = "none"
    INLINE_KEYBOARD_JSON = "inlineKeyboardJSON"


class ItemState(str, Enum):
    """Lifecycle of one item inside the batch executor."""
    PENDING = "pending"
    BUILDING = "building"
    DISPATCHING = "dispatching"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ============================================================================
# INPUT
# ============================================================================

ByteSource = Union[bytes, BinaryIO]


@dataclass(frozen=True)
class BinaryAttachment:
    """Binary payload carried by an input item.

    Either ``data`` (raw bytes) or ``stream`` (an open binary handle) is
    set.  When both are present the stream wins, so large files are not
    buffered twice.
    """
    mime_type: str = "application/octet-stream"
    data: bytes = b""
    file_name: Optional[str] = None
    stream: Optional[BinaryIO] = field(default=None, compare=False)

    @classmethod
    def from_base64(
        cls,
        encoded: str,
        mime_type: str = "application/octet-stream",
        file_name: Optional[str] = None,
    ) -> "BinaryAttachment":
        return cls(mime_type=mime_type, data=base64.b64decode(encoded), file_name=file_name)

    @property
    def source(self) -> ByteSource:
        return self.stream if self.stream is not None else self.data


@dataclass(frozen=True)
class InputItem:
    """One record of the input batch. Read-only to the pipeline."""
    json: Dict[str, Any] = field(default_factory=dict)
    binary: Dict[str, BinaryAttachment] = field(default_factory=dict)


@dataclass(frozen=True)
class BatchConfig:
    """Batch-level parameters, resolved once before the item loop."""
    operation: OperationKind
    binary_data: bool = False
    continue_on_fail: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", OperationKind.parse(self.operation))

    @classmethod
    def from_parameters(cls, resolver, continue_on_fail: bool = False) -> "BatchConfig":
        """Read ``operation`` and ``binary_data`` from item 0, as the host does."""
        return cls(
            operation=OperationKind.parse(resolver.get("operation", 0, OperationKind.SEND_MESSAGE.value)),
            binary_data=bool(resolver.get("binary_data", 0, False)),
            continue_on_fail=continue_on_fail,
        )


# ============================================================================
# REQUEST
# ============================================================================

@dataclass
class AttachmentDescriptor:
    """Resolved multipart file part for one item."""
    field_name: str
    filename: str
    content_type: str
    source: ByteSource

    def as_form_value(self) -> Dict[str, Any]:
        return {
            "value": self.source,
            "options": {
                "filename": self.filename,
                "contentType": self.content_type,
            },
        }


@dataclass
class RequestPayload:
    """Outbound request for one item, rebuilt from scratch every time."""
    endpoint: str
    method: str = "POST"
    body: Dict[str, Any] = field(default_factory=dict)
    qs: Dict[str, Any] = field(default_factory=dict)
    attachment: Optional[AttachmentDescriptor] = None

    @property
    def is_multipart(self) -> bool:
        return self.attachment is not None

    def form_data(self) -> Dict[str, Any]:
        """Body fields plus the attachment under its field name."""
        if self.attachment is None:
            return dict(self.body)
        return {
            **self.body,
            self.attachment.field_name: self.attachment.as_form_value(),
        }


# ============================================================================
# OUTPUT
# ============================================================================

@dataclass
class OutcomeRecord:
    """One entry of the result batch.

    Successful items carry the provider response in ``json``; absorbed
    failures carry an empty ``json`` and the error message.
    """
    json: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None
    item_index: Optional[int] = None

    @classmethod
    def success(cls, response: Any, item_index: int) -> "OutcomeRecord":
        if not isinstance(response, dict):
            response = {"data": response}
        return cls(json=response, item_index=item_index)

    @classmethod
    def failure(cls, message: str, item_index: int) -> "OutcomeRecord":
        return cls(json={}, error=message, item_index=item_index)

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"json": self.json, "item_index": self.item_index}
        if self.error is not None:
            data["error"] = self.error
        return data
